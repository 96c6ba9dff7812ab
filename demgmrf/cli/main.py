"""
Command Line Interface for dem-gmrf
===================================

Builds a DEM from an XYZ point file with a GMRF estimator and evaluates it
against randomly held-out checkpoints.
"""

import sys
from pathlib import Path

import click
from loguru import logger

from .. import __version__
from ..config.settings import DEMConfig
from ..pipeline.dem_pipeline import DEMPipeline
from ..visualization.surface_viewer import SurfaceViewer


def setup_logging(verbose: bool = False, log_file: Path = None):
    """Setup loguru sinks: stderr (INFO or DEBUG) plus an optional log file."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO",
               format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}")
    if log_file:
        logger.add(str(log_file), rotation="10 MB", level="DEBUG")


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--input', '-i', 'input_path', required=True,
              type=click.Path(path_type=Path),
              help='Input dataset file: X,Y,Z[,STDDEV] points in plain text format')
@click.option('--resolution', '-r', type=float, default=None,
              help='Resolution (side length) of each cell in the DEM (meters) [default: 1.0]')
@click.option('--output-prefix', '-o', type=str, default=None,
              help='Prefix for all output filenames [default: demgmrf_out]')
@click.option('--checkpoint-ratio', '-c', type=float, default=None,
              help='Ratio (1.0=all, 0.0=none) of data points to use as checkpoints. '
                   'They will not be inserted in the DEM [default: 0.01]')
@click.option('--std-prior', type=float, default=None,
              help='Standard deviation of the prior constraints (smoothness or '
                   'tolerance of the terrain) [meters, default: 1.0]')
@click.option('--std-obs', type=float, default=None,
              help='Default standard deviation of each XYZ point observation [meters, default: 0.20]')
@click.option('--skip-variance', is_flag=True,
              help='Skip variance estimation')
@click.option('--no-gui', is_flag=True,
              help='Do not show the 3D visualization window at the end')
@click.option('--seed', type=int, default=None,
              help='Random seed for checkpoint selection [default: current time]')
@click.option('--border', type=float, default=None,
              help='Margin added around the data bounding box [default: 10.0]')
@click.option('--z-nodata-threshold', type=float, default=None,
              help='Points with |z| at or above this value are ignored in the z extent [default: 1e6]')
@click.option('--config', 'config_file', type=click.Path(path_type=Path), default=None,
              help='JSON configuration file; command line values override it')
@click.option('--log-file', type=click.Path(path_type=Path), default=None,
              help='Also write a DEBUG log to this file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.version_option(__version__, prog_name='dem-gmrf')
def main(input_path, resolution, output_prefix, checkpoint_ratio, std_prior, std_obs,
         skip_variance, no_gui, seed, border, z_nodata_threshold, config_file,
         log_file, verbose):
    """
    dem-gmrf: DEM estimation from scattered XYZ points with a Gaussian
    Markov Random Field, validated against random checkpoints.
    """
    setup_logging(verbose, log_file)

    logger.info(f"dem-gmrf {__version__}")
    logger.info("-" * 67)

    base = DEMConfig.from_file(config_file) if config_file else DEMConfig.create_default()
    config = base.replace(
        input_path=str(input_path),
        resolution=resolution,
        output_prefix=output_prefix,
        checkpoint_ratio=checkpoint_ratio,
        std_prior=std_prior,
        std_obs=std_obs,
        skip_variance=skip_variance or None,
        no_gui=no_gui or None,
        seed=seed,
        border=border,
        z_nodata_threshold=z_nodata_threshold,
    )

    pipeline = DEMPipeline(config, viewer=SurfaceViewer())
    results = pipeline.run()

    click.echo("\n" + "=" * 50)
    click.echo("Processing completed successfully!")
    click.echo("=" * 50)
    click.echo(f"Total points: {results['total_points']:,}")
    click.echo(f"Inserted points: {results['inserted_points']:,}")
    click.echo(f"Checkpoints: {results['checkpoints']:,}")
    click.echo(f"Grid size: {results['grid_size'][0]}x{results['grid_size'][1]}")
    for policy, stats in results['stats'].items():
        click.echo(f"RMSE ({policy}): {stats.rmse:.4f}")
    click.echo(f"Saved {len(results['saved_files'])} output files with prefix: {results['output_prefix']}")


def run(argv=None) -> int:
    """
    Console entry point. Returns the process exit status.

    Any argument error or exception ends the run with status 1.
    """
    try:
        rv = main.main(args=argv, prog_name='dem-gmrf', standalone_mode=False)
        if isinstance(rv, int):
            # --help / --version exit early with their own status
            return rv
    except click.exceptions.Exit as e:
        return e.exit_code
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except Exception as e:
        logger.opt(exception=e).debug("Run failed")
        logger.error(f"{type(e).__name__}: {e}")
        click.echo(f"Error: {e}", err=True)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(run())
