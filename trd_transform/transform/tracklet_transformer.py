# transform/tracklet_transformer.py

import math
from collections import namedtuple

import numpy as np
import pandas as pd

from trd_transform.decode.field_decoder import DecodingMode, decode_field, decode_field_array
from trd_transform.errors import UninitializedGeometryError
from trd_transform.trd_constants import (
    NBITSTRKLPOS, NBITSTRKLSLOPE,
    GRANULARITYTRKLPOS, GRANULARITYTRKLSLOPE, ADDBITSHIFTSLOPE,
    NCOLMCM, Y_CALIB_OFFSET, Y_PAD_OFFSET,
    XDRIFT_MARGIN, T0_REFERENCE_CHAMBER, TIMEBIN_T0, TIMEBIN_WIDTH
)

RawTracklet = namedtuple("RawTracklet", ["detector", "hcid", "padrow", "column", "position", "slope"])
CalibratedTracklet = namedtuple("CalibratedTracklet", ["x", "y", "z", "dy"])

RAW_COLUMNS = list(RawTracklet._fields)


class TrackletTransformer:
    """
    Turns raw tracklets into calibrated space points (x, y, z) and a calibrated dy.

    x = 0 at the anode wire plane, pointing toward the pad plane.
    Call init() once before transforming; afterwards all methods only read
    the geometry and calibration tables and can run in parallel.
    """

    def __init__(self, geom, cal_vdrift_exb, cal_t0, apply_xor=False, verbose=False):
        self.geom = geom
        self.cal_vdrift_exb = cal_vdrift_exb
        self.cal_t0 = cal_t0
        self.mode = DecodingMode.LEGACY_XOR if apply_xor else DecodingMode.DIRECT
        self.verbose = verbose

        self.x_cathode = None
        self.x_anode = None
        self.x_drift = None

    def init(self):
        self.geom.materialize_pad_planes()
        self.geom.materialize_module_transforms()

        # 3 cm
        self.x_cathode = self.geom.cdr_hght
        # 3.35 cm
        self.x_anode = self.geom.cdr_hght + self.geom.cam_hght / 2
        # 5 mm below the cathode plane to limit error propagation from the tracklet fit and vdrift
        self.x_drift = self.geom.cdr_hght - XDRIFT_MARGIN

    def _check_init(self):
        if self.x_drift is None:
            raise UninitializedGeometryError("TrackletTransformer.init() has not been called")

    def get_x_cathode(self):
        self._check_init()
        return self.x_cathode

    def get_x_anode(self):
        self._check_init()
        return self.x_anode

    def get_x_drift(self):
        self._check_init()
        return self.x_drift

    def decode(self, tracklet):
        """Signed (position, slope) of a raw tracklet in the configured mode."""
        position = decode_field(tracklet.position, NBITSTRKLPOS, self.mode)
        slope = decode_field(tracklet.slope, NBITSTRKLSLOPE, self.mode)
        return position, slope

    def calculate_y(self, hcid, column, position, pad_plane):
        pad_width = pad_plane.get_width_ipad()
        side = hcid % 2
        center = 1 << (NBITSTRKLPOS - 1)

        # shift so that position == center corresponds to the MCM center
        position += center
        pad = (position - center) * GRANULARITYTRKLPOS + NCOLMCM * (4 * side + column) + Y_CALIB_OFFSET
        return pad_width * (pad - Y_PAD_OFFSET)

    def calculate_z(self, padrow, pad_plane):
        row_pos = pad_plane.get_row_pos(padrow)
        row_size = pad_plane.get_row_size(padrow)
        middle_row_pos = pad_plane.get_row_pos(pad_plane.get_n_rows() // 2)

        return row_pos - row_size / 2. - middle_row_pos

    def calculate_dy(self, detector, slope, pad_plane):
        self._check_init()
        pad_width = pad_plane.get_width_ipad()

        vdrift = self.cal_vdrift_exb.get_vdrift(detector)
        exb = self.cal_vdrift_exb.get_exb(detector)

        # number of timebins in the drift region times the slope, 1 timebin = 100 ns
        raw_dy = slope * ((self.x_cathode / vdrift) * 10.) * pad_width * GRANULARITYTRKLSLOPE / ADDBITSHIFTSLOPE

        # NOTE: sign of the Lorentz angle is not cross-checked against the calibration code
        lorentz_correction = math.tan(exb) * self.x_anode

        return raw_dy - lorentz_correction

    def calibrate_x(self, detector, x):
        # t0 is averaged over all chambers and stored in the PHOS hole chamber
        # TODO: switch to chamber-wise t0 once the calibration provides it
        t0_correction = self.cal_t0.get_t0(T0_REFERENCE_CHAMBER)
        return x + t0_correction

    def transform_l2t(self, detector, point):
        transform = self.geom.get_module_transform(detector)
        return transform.apply(point)

    def transform_tracklet(self, tracklet, tracking_frame=True):
        self._check_init()
        position, slope = self.decode(tracklet)

        pad_plane = self.geom.get_pad_plane(tracklet.detector)

        x = self.get_x_drift()
        y = self.calculate_y(tracklet.hcid, tracklet.column, position, pad_plane)
        z = self.calculate_z(tracklet.padrow, pad_plane)
        dy = self.calculate_dy(tracklet.detector, slope, pad_plane)

        calibrated_x = self.calibrate_x(tracklet.detector, x)

        if tracking_frame:
            point = self.transform_l2t(tracklet.detector, (calibrated_x, y, z))
            if self.verbose:
                print(f"[DEBUG] x: {point[0]} | y: {point[1]} | z: {point[2]}")
            return CalibratedTracklet(float(point[0]), float(point[1]), float(point[2]), dy)

        return CalibratedTracklet(calibrated_x, y, z, dy)

    def transform_tracklets(self, tracklets, tracking_frame=True):
        """
        Batch version of transform_tracklet.

        Args:
            tracklets: DataFrame (or dict of arrays) with the RawTracklet columns
            tracking_frame (bool): map points into the tracking frame

        Returns:
            DataFrame with columns detector, x, y, z, dy
        """
        self._check_init()
        df = pd.DataFrame({col: np.asarray(tracklets[col]) for col in RAW_COLUMNS})

        positions = decode_field_array(df["position"].to_numpy(), NBITSTRKLPOS, self.mode)
        slopes = decode_field_array(df["slope"].to_numpy(), NBITSTRKLSLOPE, self.mode)

        out = np.empty((len(df), 4), dtype=np.float64)
        x_drift = self.get_x_drift()

        for i, row in enumerate(df.itertuples(index=False)):
            det = int(row.detector)
            pad_plane = self.geom.get_pad_plane(det)

            x = self.calibrate_x(det, x_drift)

            y = self.calculate_y(int(row.hcid), int(row.column), int(positions[i]), pad_plane)
            z = self.calculate_z(int(row.padrow), pad_plane)
            dy = self.calculate_dy(det, int(slopes[i]), pad_plane)

            if tracking_frame:
                out[i, :3] = self.transform_l2t(det, (x, y, z))
                if self.verbose:
                    print(f"[DEBUG] x: {out[i, 0]} | y: {out[i, 1]} | z: {out[i, 2]}")
            else:
                out[i, :3] = (x, y, z)
            out[i, 3] = dy

        result = pd.DataFrame(out, columns=list(CalibratedTracklet._fields))
        result.insert(0, "detector", df["detector"].to_numpy())
        return result

    def get_timebin(self, detector, x):
        vdrift = self.cal_vdrift_exb.get_vdrift(detector)
        cam_hght = self.geom.cam_hght

        if x < -cam_hght / 2:
            # drift region
            return TIMEBIN_T0 - (x + cam_hght / 2) / (vdrift * TIMEBIN_WIDTH)
        # anode region: rough guess only
        return TIMEBIN_T0 - 1.0 + abs(x)
