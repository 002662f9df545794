import argparse
import os

import matplotlib.pyplot as plt
import numpy as np

from trd_transform.calib.calib_service import CalVdriftExB, CalT0
from trd_transform.geom.geom_service import GeometryService
from trd_transform.transform.tracklet_transformer import TrackletTransformer


def plot_timebin(transformer, detector, output_folder="timebin_plots"):
    """
    Plots the timebin estimate over local x, marking the drift/anode boundary.
    """
    cam_hght = transformer.geom.cam_hght
    boundary = -cam_hght / 2

    xs = np.linspace(-transformer.geom.cdr_hght - cam_hght / 2, cam_hght / 2, 500)
    timebins = np.array([transformer.get_timebin(detector, x) for x in xs])

    left = transformer.get_timebin(detector, np.nextafter(boundary, -np.inf))
    right = transformer.get_timebin(detector, boundary)
    print(f"Timebin jump at x = {boundary:.3f} cm for detector {detector}: {left - right:.3f}")

    os.makedirs(output_folder, exist_ok=True)

    plt.plot(xs, timebins, ".", markersize=2)
    plt.axvline(boundary, color="tomato", linestyle="--", label="drift / anode boundary")
    plt.xlabel("Local x (cm)")
    plt.ylabel("Timebin")
    plt.title(f"Timebin estimate for detector {detector}")
    plt.legend()
    plt.grid(True)

    plt.savefig(f"{output_folder}/timebin_detector_{detector}.png", dpi=300)
    plt.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Plot the timebin estimate vs. local x.")
    parser.add_argument("--geom_tsv", type=str, required=True, help="Geometry parameter table")
    parser.add_argument("--vdrift_tsv", type=str, required=True, help="Drift velocity / ExB calibration table")
    parser.add_argument("--detector", type=int, default=0, help="Detector index (default: 0)")
    args = parser.parse_args()

    transformer = TrackletTransformer(
        GeometryService(tsv_path=args.geom_tsv),
        CalVdriftExB.from_tsv(args.vdrift_tsv),
        CalT0({}),
    )
    plot_timebin(transformer, args.detector)
