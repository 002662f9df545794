# calib/calib_service.py

import pandas as pd

from trd_transform.errors import MissingCalibrationError


def load_calibration_from_tsv(tsv_path, columns):
    """
    Read a tab separated calibration table into {detector: {column: value}}.
    Later rows for the same detector override earlier ones.
    """
    df = pd.read_csv(tsv_path, sep='\t', comment='#', names=["detector"] + columns)
    table = {}
    for row in df.itertuples(index=False):
        table[int(row.detector)] = {col: float(getattr(row, col)) for col in columns}
    return table


class CalVdriftExB:
    """Drift velocity (cm/us) and Lorentz angle (rad) per detector."""

    def __init__(self, table):
        self.table = table

    @classmethod
    def from_tsv(cls, tsv_path):
        return cls(load_calibration_from_tsv(tsv_path, ["vdrift", "exb"]))

    @classmethod
    def from_dict(cls, vdrift, exb):
        return cls({det: {"vdrift": vdrift[det], "exb": exb[det]} for det in vdrift if det in exb})

    def get_vdrift(self, det_id):
        if det_id not in self.table:
            raise MissingCalibrationError("vdrift", det_id)
        return self.table[det_id]["vdrift"]

    def get_exb(self, det_id):
        if det_id not in self.table:
            raise MissingCalibrationError("exb", det_id)
        return self.table[det_id]["exb"]


class CalT0:
    """Timing offset per detector."""

    def __init__(self, table):
        self.table = table

    @classmethod
    def from_tsv(cls, tsv_path):
        return cls(load_calibration_from_tsv(tsv_path, ["t0"]))

    @classmethod
    def from_dict(cls, t0):
        return cls({det: {"t0": value} for det, value in t0.items()})

    def get_t0(self, det_id):
        if det_id not in self.table:
            raise MissingCalibrationError("t0", det_id)
        return self.table[det_id]["t0"]
