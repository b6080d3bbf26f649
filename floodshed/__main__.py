import argparse
import sys

import toml
from loguru import logger

from floodshed.config import TerrainConfig
from floodshed.core import analyze_terrain
from floodshed.utils.raster import load_raster
from floodshed.utils.raster import save_raster


def setup_logging(enable_logging, log_file):
    if enable_logging:
        logger.enable("floodshed")
        if log_file:
            logger.remove()

            logger.add(log_file, level="DEBUG")
        else:
            logger.remove()
            logger.add(sys.stderr, level="DEBUG")
        logger.info("logging enabled")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="floodshed",
        description="Priority flood watershed labeling and drainage correction",
    )
    parser.add_argument("--dem_file", type=str, required=True)
    parser.add_argument("--labels_ofile", type=str, required=True)
    parser.add_argument("--conditioned_ofile", type=str, default=None)
    parser.add_argument("--areas_ofile", type=str, default=None)
    parser.add_argument("--flow_acc_file", type=str, default=None)
    parser.add_argument("--param_file", type=str, default=None)
    parser.add_argument("--correct_drainage", action="store_true")
    parser.add_argument("--enable_logging", action="store_true")  # false if not set
    parser.add_argument("--log_file", type=str, default=None)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    setup_logging(args.enable_logging, args.log_file)

    if args.param_file:
        config = TerrainConfig.from_dict(toml.load(args.param_file))
    else:
        config = TerrainConfig()
    if args.correct_drainage:
        config.flood.correct_drainage = True

    dem = load_raster(args.dem_file)
    flow_acc = load_raster(args.flow_acc_file) if args.flow_acc_file else None

    results = analyze_terrain(dem, config, flow_acc=flow_acc)

    save_raster(results.watersheds, args.labels_ofile)
    if args.conditioned_ofile:
        save_raster(results.conditioned_dem, args.conditioned_ofile)
    if args.areas_ofile:
        results.areas.to_csv(args.areas_ofile)


if __name__ == "__main__":
    main()
