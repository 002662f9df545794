# errors.py


class UninitializedGeometryError(RuntimeError):
    """Raised when geometry tables are used before they were materialized."""


class MissingCalibrationError(KeyError):
    """Raised when a calibration table has no entry for a detector."""

    def __init__(self, table, detector):
        super().__init__(f"No {table} calibration for detector {detector}")
        self.table = table
        self.detector = detector
