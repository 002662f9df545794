import numpy as np
import pandas as pd
import uproot

from trd_transform.transform.tracklet_transformer import RAW_COLUMNS


def read_tracklets(input_filename, tree_name="tracklets"):
    """
    Reads the raw tracklet branches of a flat ROOT tree into a DataFrame.
    """
    with uproot.open(input_filename) as input_file:
        if tree_name not in input_file:
            raise RuntimeError(f"Could not find '{tree_name}' in {input_filename}")
        tree = input_file[tree_name]

        missing = [col for col in RAW_COLUMNS if col not in tree.keys()]
        if missing:
            raise RuntimeError(f"Tree '{tree_name}' in {input_filename} is missing branches {missing}")

        arrays = tree.arrays(RAW_COLUMNS, library="np")

    return pd.DataFrame({col: arrays[col].astype(np.int64) for col in RAW_COLUMNS})


def write_calibrated(output_filename, calibrated, tree_name="calibrated"):
    """
    Writes calibrated tracklets (detector, x, y, z, dy) to a new ROOT file.
    """
    branches = {
        "detector": calibrated["detector"].to_numpy().astype(np.int32),
        "x": calibrated["x"].to_numpy().astype(np.float64),
        "y": calibrated["y"].to_numpy().astype(np.float64),
        "z": calibrated["z"].to_numpy().astype(np.float64),
        "dy": calibrated["dy"].to_numpy().astype(np.float64),
    }

    with uproot.recreate(output_filename) as output_file:
        output_file[tree_name] = branches

    print(f"Wrote calibrated tracklets to '{output_filename}'")
