"""
Run the full tracklet transformation pipeline.
"""

import argparse
import time

from trd_transform.calib.calib_service import CalVdriftExB, CalT0
from trd_transform.geom.geom_service import GeometryService
from trd_transform.transform.tracklet_transformer import TrackletTransformer
from trd_transform.utils.io_helpers import read_tracklets, write_calibrated


def build_transformer(geom_tsv, vdrift_tsv, t0_tsv, **kwargs):
    geom = GeometryService(tsv_path=geom_tsv)
    transformer = TrackletTransformer(
        geom,
        CalVdriftExB.from_tsv(vdrift_tsv),
        CalT0.from_tsv(t0_tsv),
        apply_xor=kwargs.get('apply_xor', False),
        verbose=kwargs.get('verbose', False),
    )
    transformer.init()

    if kwargs.get('dump_geometry', False):
        geom.dump_geometry_summary()

    return transformer


def run_transformation(input_file, output_file, geom_tsv, vdrift_tsv, t0_tsv, **kwargs):
    """
    Read raw tracklets from a ROOT file, calibrate them, and write a new ROOT file.
    """
    total_start = time.perf_counter()

    transformer = build_transformer(geom_tsv, vdrift_tsv, t0_tsv, **kwargs)

    read_start = time.perf_counter()
    tracklets = read_tracklets(input_file, tree_name=kwargs.get('tree_name', "tracklets"))
    read_end = time.perf_counter()
    print(f"[INFO] Read {len(tracklets)} tracklets from {input_file}")

    transform_start = time.perf_counter()
    calibrated = transformer.transform_tracklets(tracklets, tracking_frame=kwargs.get('tracking_frame', True))
    transform_end = time.perf_counter()

    write_start = time.perf_counter()
    write_calibrated(output_file, calibrated)
    write_end = time.perf_counter()

    total_end = time.perf_counter()

    print("\n--- Timing Summary ---")
    print(f"Read time:      {read_end - read_start:.2f} s")
    print(f"Transform time: {transform_end - transform_start:.2f} s")
    print(f"Write time:     {write_end - write_start:.2f} s")
    print(f"Total runtime:  {total_end - total_start:.2f} s")

    return calibrated


def main(argv=None):
    parser = argparse.ArgumentParser(description="Transform raw TRD tracklets into calibrated space points.")
    parser.add_argument("input_file", type=str, help="Input ROOT file with a 'tracklets' tree")
    parser.add_argument("output_file", type=str, help="Output ROOT file for the 'calibrated' tree")
    parser.add_argument(
        "--geom_tsv", type=str, required=True,
        help="Geometry parameter table (pad planes and module transforms)"
    )
    parser.add_argument(
        "--vdrift_tsv", type=str, required=True,
        help="Drift velocity / ExB calibration table"
    )
    parser.add_argument(
        "--t0_tsv", type=str, required=True,
        help="Timing offset calibration table"
    )
    parser.add_argument(
        "--local_frame", action="store_true",
        help="Keep points in the local chamber frame (default: tracking frame)"
    )
    parser.add_argument(
        "--apply_xor", action="store_true",
        help="Decode position/slope with the legacy sign-bit XOR encoding"
    )
    parser.add_argument("--tree_name", type=str, default="tracklets", help="Input tree name (default: tracklets)")
    parser.add_argument("--dump_geometry", action="store_true", help="Write geometry_dump.tsv")
    parser.add_argument("--verbose", action="store_true", help="Print every tracking frame point")

    args = parser.parse_args(argv)

    run_transformation(
        input_file=args.input_file,
        output_file=args.output_file,
        geom_tsv=args.geom_tsv,
        vdrift_tsv=args.vdrift_tsv,
        t0_tsv=args.t0_tsv,
        tracking_frame=not args.local_frame,
        apply_xor=args.apply_xor,
        tree_name=args.tree_name,
        dump_geometry=args.dump_geometry,
        verbose=args.verbose,
    )


if __name__ == "__main__":
    main()
