import math

import numpy as np
import pandas as pd
import pytest

from trd_transform.errors import UninitializedGeometryError
from trd_transform.geom.geom_service import Affine3D, PadPlane


def test_pad_plane_rows():
    pad_plane = PadPlane(detector=0, n_rows=4, row0_pos=10.0, length_opad=2.0,
                         length_ipad=3.0, row_spacing=0.5, width_ipad=0.635)
    assert pad_plane.row_size == [2.0, 3.0, 3.0, 2.0]
    assert pad_plane.row_pos == [10.0, 7.5, 4.0, 0.5]
    assert pad_plane.get_n_rows() == 4
    assert pad_plane.get_width_ipad() == 0.635


def test_identity_transform_keeps_point():
    point = (2.5, -12.3, 40.1)
    result = Affine3D.identity().apply(point)
    assert np.allclose(result, point)


def test_rotation_about_z():
    transform = Affine3D.from_angles(0.0, 0.0, math.pi / 2, 1.0, 2.0, 3.0)
    result = transform.apply((1.0, 0.0, 0.0))
    assert np.allclose(result, (1.0, 3.0, 3.0))


def test_tables_materialized_from_tsv(geom):
    geom.materialize_pad_planes()
    geom.materialize_module_transforms()

    assert sorted(geom.get_pad_planes()) == [0, 1, 5]
    pad_plane = geom.get_pad_plane(1)
    assert pad_plane.n_rows == 12
    assert pad_plane.width_ipad == pytest.approx(0.665)
    assert pad_plane.row_pos[1] == pytest.approx(50.0 - 8.0 - 0.1)

    assert np.allclose(geom.get_module_transform(0).rotation, np.eye(3))
    assert np.allclose(geom.get_module_transform(1).translation, (300.0, 10.0, -5.0))


def test_lookup_before_materialize_raises(geom):
    with pytest.raises(UninitializedGeometryError):
        geom.get_pad_plane(0)
    with pytest.raises(UninitializedGeometryError):
        geom.get_module_transform(0)


def test_unknown_detector_raises(geom):
    geom.materialize_pad_planes()
    with pytest.raises(KeyError):
        geom.get_pad_plane(17)


def test_empty_table_fails(geom):
    geom.params = geom.params.iloc[0:0]
    with pytest.raises(RuntimeError):
        geom.materialize_pad_planes()
    with pytest.raises(RuntimeError):
        geom.materialize_module_transforms()


def test_missing_geometry_file(tmp_path):
    from trd_transform.geom.geom_service import GeometryService

    with pytest.raises(FileNotFoundError):
        GeometryService(tsv_path=str(tmp_path / "missing.tsv"))


def test_dump_geometry_summary(geom, tmp_path):
    geom.materialize_pad_planes()
    output_path = tmp_path / "geometry_dump.tsv"
    geom.dump_geometry_summary(output_path=output_path)

    df = pd.read_csv(output_path, sep="\t")
    assert list(df["detector"]) == [0, 1, 5]
    assert df.loc[0, "row_pos_first"] == pytest.approx(60.0)
