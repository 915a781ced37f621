from datetime import datetime
import math
import platform

def start_audit(source: str = "") -> list[str]:
    entries = [f"Session start: {datetime.now().isoformat()}",
               f"Platform: {platform.platform()}"]
    if source:
        entries.append(f"Source: {source}")
    return entries

def log_step(audit: list[str], msg: str):
    audit.append(f"{datetime.now().isoformat(timespec='seconds')} {msg}")

def log_analysis(audit: list[str], result) -> None:
    settings = result.settings
    regions = result.regions
    if settings is not None:
        log_step(audit, f"Analysis: mode={settings.normalization_mode} "
                        f"window={settings.smoothing_window} "
                        f"reference={settings.reference_sample_index}")
    log_step(audit, f"Regions: pre=[{regions.pre_start}, {regions.pre_end}) "
                    f"post=[{regions.post_start}, {regions.post_end})")
    for sample in result.samples:
        tm = sample.tm
        tm_text = f"{tm:.2f}" if tm is not None and math.isfinite(tm) else "n/a"
        log_step(audit, f"Tm {sample.name}: {tm_text}")
    for warning in result.warnings:
        log_step(audit, f"Warning: {warning}")
