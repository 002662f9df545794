import pandas as pd
import pytest

from trd_transform.calib.calib_service import CalVdriftExB, CalT0
from trd_transform.geom.geom_service import GEOMETRY_COLUMNS, GeometryService
from trd_transform.transform.tracklet_transformer import TrackletTransformer

# detector 0: identity transform, detector 1: rotated and shifted, detector 5: no calibration
GEOMETRY_ROWS = [
    [0, 16, 60.0, 7.5, 9.0, 0.0, 0.635, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
    [1, 12, 50.0, 8.0, 9.5, 0.1, 0.665, 300.0, 10.0, -5.0, 0.0, 0.0, 0.3],
    [5, 16, 60.0, 7.5, 9.0, 0.0, 0.635, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
]

CALIB_ROWS = [
    [0, 1.546, 0.1],
    [1, 1.5, 0.0],
]

T0_ROWS = [
    [435, 0.2],
    [0, 7.0],
]


def write_tsv(path, rows, columns, header="# generated for tests"):
    with open(path, "w") as f:
        f.write(header + "\n")
    pd.DataFrame(rows, columns=columns).to_csv(path, sep="\t", header=False, index=False, mode="a")
    return path


@pytest.fixture
def geom_tsv(tmp_path):
    return write_tsv(tmp_path / "geometry.tsv", GEOMETRY_ROWS, GEOMETRY_COLUMNS)


@pytest.fixture
def vdrift_tsv(tmp_path):
    return write_tsv(tmp_path / "vdrift.tsv", CALIB_ROWS, ["detector", "vdrift", "exb"])


@pytest.fixture
def t0_tsv(tmp_path):
    return write_tsv(tmp_path / "t0.tsv", T0_ROWS, ["detector", "t0"])


@pytest.fixture
def geom(geom_tsv):
    return GeometryService(tsv_path=str(geom_tsv))


@pytest.fixture
def transformer(geom, vdrift_tsv, t0_tsv):
    t = TrackletTransformer(geom, CalVdriftExB.from_tsv(vdrift_tsv), CalT0.from_tsv(t0_tsv))
    t.init()
    return t


@pytest.fixture
def xor_transformer(geom, vdrift_tsv, t0_tsv):
    t = TrackletTransformer(geom, CalVdriftExB.from_tsv(vdrift_tsv), CalT0.from_tsv(t0_tsv), apply_xor=True)
    t.init()
    return t
