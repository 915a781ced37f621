"""Exception taxonomy shared by the readers and the analysis engine."""


class HrmError(ValueError):
    """Base class for failures that abort an import or an analysis run."""


class InvalidReading(HrmError):
    pass


class NoValidTemperatureData(HrmError):
    pass


class NoValidSamples(HrmError):
    pass


class ArchiveDecodeError(HrmError):
    pass


class NoHrmDataFound(HrmError):
    pass


class NoSamplesParsed(HrmError):
    pass


class InvalidSettings(HrmError):
    pass


class NoDataLoaded(HrmError):
    pass


class NumericDegeneracy(RuntimeWarning):
    """Normalization produced non-finite values (empty or equal baselines).

    Emitted as a warning; the non-finite values stay in the result.
    """
