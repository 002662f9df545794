# geom/geom_service.py

import math

import numpy as np
import pandas as pd

from trd_transform.errors import UninitializedGeometryError
from trd_transform.trd_constants import CDRHGHT, CAMHGHT

GEOMETRY_COLUMNS = [
    "detector", "n_rows", "row0_pos", "length_opad", "length_ipad", "row_spacing",
    "width_ipad", "x0", "y0", "z0", "theta_x", "theta_y", "theta_z"
]


class PadPlane:
    def __init__(self, detector, n_rows, row0_pos, length_opad, length_ipad, row_spacing, width_ipad):
        # --- Detector identifier ---
        self.detector = detector

        # --- Pad properties ---
        self.n_rows = n_rows
        self.width_ipad = width_ipad
        self.length_opad = length_opad
        self.length_ipad = length_ipad
        self.row_spacing = row_spacing

        # Outer pads on both ends of the plane, inner pads in between
        self.row_size = [
            length_opad if ir in (0, n_rows - 1) else length_ipad
            for ir in range(n_rows)
        ]

        # --- Row positions, row 0 at the anchor, counting down in z ---
        self.row_pos = [row0_pos]
        for ir in range(1, n_rows):
            self.row_pos.append(self.row_pos[ir - 1] - self.row_size[ir - 1] - row_spacing)

    def get_row_pos(self, row):
        return self.row_pos[row]

    def get_row_size(self, row):
        return self.row_size[row]

    def get_n_rows(self):
        return self.n_rows

    def get_width_ipad(self):
        return self.width_ipad


class Affine3D:
    """
    Rotation + translation taking a local chamber point into the tracking frame.
    """

    def __init__(self, rotation, translation):
        self.rotation = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
        self.translation = np.asarray(translation, dtype=np.float64).reshape(3)

    @classmethod
    def identity(cls):
        return cls(np.eye(3), np.zeros(3))

    @classmethod
    def from_angles(cls, theta_x, theta_y, theta_z, x0, y0, z0):
        """
        Build the transform from survey angles (radians) and the chamber center.
        Rotations are applied about x, then y, then z.
        """
        cx, sx = math.cos(theta_x), math.sin(theta_x)
        cy, sy = math.cos(theta_y), math.sin(theta_y)
        cz, sz = math.cos(theta_z), math.sin(theta_z)

        rot_x = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
        rot_y = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
        rot_z = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])

        return cls(rot_z @ rot_y @ rot_x, (x0, y0, z0))

    def apply(self, point):
        return self.rotation @ np.asarray(point, dtype=np.float64) + self.translation


class GeometryService:
    def __init__(self, tsv_path: str, cdr_hght=CDRHGHT, cam_hght=CAMHGHT):
        self.pad_planes = None  # detector -> PadPlane, filled by materialize_pad_planes
        self.transforms = None  # detector -> Affine3D, filled by materialize_module_transforms
        self.cdr_hght = cdr_hght
        self.cam_hght = cam_hght
        self.tsv_path = tsv_path
        self.params = self.load_geometry_from_tsv()

    def load_geometry_from_tsv(self):
        df = pd.read_csv(self.tsv_path, sep='\t', comment='#', names=GEOMETRY_COLUMNS)
        return df.drop_duplicates(subset="detector", keep="last")

    def materialize_pad_planes(self):
        if self.params.empty:
            raise RuntimeError(f"No detectors found in geometry table {self.tsv_path}")

        pad_planes = {}
        for row in self.params.itertuples():
            det = int(row.detector)
            pad_planes[det] = PadPlane(
                detector=det,
                n_rows=int(row.n_rows),
                row0_pos=float(row.row0_pos),
                length_opad=float(row.length_opad),
                length_ipad=float(row.length_ipad),
                row_spacing=float(row.row_spacing),
                width_ipad=float(row.width_ipad),
            )
        self.pad_planes = pad_planes
        print(f"[INFO] Created {len(pad_planes)} pad planes from {self.tsv_path}")

    def materialize_module_transforms(self):
        if self.params.empty:
            raise RuntimeError(f"No detectors found in geometry table {self.tsv_path}")

        transforms = {}
        for row in self.params.itertuples():
            transforms[int(row.detector)] = Affine3D.from_angles(
                row.theta_x, row.theta_y, row.theta_z,
                row.x0, row.y0, row.z0,
            )
        self.transforms = transforms
        print(f"[INFO] Created {len(transforms)} module transforms from {self.tsv_path}")

    def get_pad_plane(self, det_id):
        if self.pad_planes is None:
            raise UninitializedGeometryError("Pad planes requested before materialize_pad_planes()")
        return self.pad_planes[det_id]

    def get_module_transform(self, det_id):
        if self.transforms is None:
            raise UninitializedGeometryError("Module transforms requested before materialize_module_transforms()")
        return self.transforms[det_id]

    def dump_geometry_summary(self, output_path="geometry_dump.tsv"):
        rows = []
        for det_id, pad_plane in self.get_pad_planes().items():
            row = {
                "detector": det_id,
                "n_rows": pad_plane.n_rows,
                "width_ipad": pad_plane.width_ipad,
                "row_pos_first": pad_plane.row_pos[0] if pad_plane.row_pos else None,
                "row_pos_middle": pad_plane.get_row_pos(pad_plane.n_rows // 2) if pad_plane.row_pos else None,
                "row_pos_last": pad_plane.row_pos[-1] if pad_plane.row_pos else None,
            }
            rows.append(row)

        df = pd.DataFrame(rows)
        df.to_csv(output_path, sep="\t", index=False)
        print(f"[INFO] Geometry summary dumped to {output_path}")

    def get_pad_planes(self):
        if self.pad_planes is None:
            raise UninitializedGeometryError("Pad planes requested before materialize_pad_planes()")
        return self.pad_planes
