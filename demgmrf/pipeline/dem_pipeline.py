"""
DEM Estimation Pipeline
=======================

Main processing pipeline: load points, derive the bounding box, split off
checkpoints, insert the remaining points into the field estimator, solve,
validate against the checkpoints and write all artifacts.
"""

import time
from contextlib import contextmanager
from typing import Dict, Optional

from loguru import logger

from ..config.settings import DEMConfig
from ..core.bounding_box import BoundingBox, compute_bounding_box
from ..core.field_estimator import FieldEstimator
from ..core.gmrf import GMRFHeightGrid
from ..core.sampling import IndexPartition, split_checkpoints
from ..core.validation import CheckpointValidator
from ..io.output_writer import (OutputWriter, SUFFIX_MAP, SUFFIX_POINTS_CHECKPOINTS,
                                SUFFIX_POINTS_MAP, SUFFIX_RENDER_SCRIPT)
from ..io.point_reader import PointReader, PointTable


@contextmanager
def stage(number: int, title: str, timings: Dict[str, float]):
    """Log start/end of a numbered pipeline stage and record its duration."""
    key = f"{number}.{title.lower().replace(' ', '_')}"
    logger.info(f"[{number}] {title}...")
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    timings[key] = elapsed
    logger.info(f"[{number}] Done ({elapsed:.3f} s)")


class DEMPipeline:
    """
    Batch DEM estimation with checkpoint cross-validation.

    The field estimator and the end-of-run viewer are injectable; by default
    a GMRFHeightGrid is built from the configuration and no viewer runs.
    """

    def __init__(self, config: DEMConfig,
                 estimator: Optional[FieldEstimator] = None,
                 viewer=None):
        """
        Initialize the pipeline.

        Parameters:
            config (DEMConfig): Run configuration (validated here)
            estimator (Optional[FieldEstimator]): Estimator to fill and solve
            viewer: Optional object with ``show(estimator)`` run at the end
                unless ``config.no_gui`` is set
        """
        config.validate()
        self.config = config
        self.estimator = estimator if estimator is not None else GMRFHeightGrid.from_config(config)
        self.viewer = viewer
        self.reader = PointReader()
        self.timings: Dict[str, float] = {}

        self.points: Optional[PointTable] = None
        self.bbox: Optional[BoundingBox] = None
        self.partition: Optional[IndexPartition] = None

    def load_points(self) -> PointTable:
        self.points = self.reader.read_points(self.config.input_path)
        logger.info(f"Points: {self.points.n_points:7d}  Columns: {self.points.n_columns:3d}")
        return self.points

    def compute_bbox(self) -> BoundingBox:
        p = self.points
        self.bbox = compute_bounding_box(p.x, p.y, p.z, border=self.config.border,
                                         z_nodata_threshold=self.config.z_nodata_threshold)
        b = self.bbox
        logger.info(f"Bbox: x={b.min_x:11.2f} <-> {b.max_x:11.2f} (D={b.width:11.2f})")
        logger.info(f"Bbox: y={b.min_y:11.2f} <-> {b.max_y:11.2f} (D={b.height:11.2f})")
        if b.has_z_extent:
            logger.info(f"Bbox: z={b.min_z:11.2f} <-> {b.max_z:11.2f} (D={b.depth:11.2f})")
        return self.bbox

    def select_checkpoints(self) -> IndexPartition:
        self.partition = split_checkpoints(self.points.n_points, self.config.checkpoint_ratio,
                                           seed=self.config.seed)
        part = self.partition
        logger.info(f"Checkpoints: {part.n_checkpoints:9d} ({100.0 * self.config.checkpoint_ratio:.2f}%)"
                    f"  Rest of points: {part.n_insert:9d}  (seed {part.seed})")
        return self.partition

    def init_estimator(self) -> None:
        cfg = self.config
        self.estimator.configure(cfg.lambda_prior, cfg.lambda_obs, cfg.skip_variance)
        b = self.bbox
        self.estimator.resize(b.min_x, b.max_x, b.min_y, b.max_y, cfg.resolution, (0.0, 0.0))
        rows, cols = self.estimator.size()
        logger.info(f"Grid: {rows} rows x {cols} cols at resolution {cfg.resolution:g}")

    def insert_points(self) -> int:
        p = self.points
        default_std = self.config.std_obs
        indices = self.partition.insert_indices
        for i in indices:
            self.estimator.insert_observation(
                float(p.z[i]), float(p.x[i]), float(p.y[i]),
                update_now=False,
                time_invariant=True,
                stddev=p.point_stddev(i, default_std),
            )
        return len(indices)

    def run(self) -> Dict:
        """
        Run the complete pipeline.

        Returns:
            Dict: Processing results summary
        """
        cfg = self.config
        writer = OutputWriter(cfg.output_prefix)
        saved_files: Dict[str, str] = {}
        stats = {}
        predicted_std = {}

        with stage(1, "Load dataset", self.timings):
            self.load_points()

        with stage(2, "Bounding box", self.timings):
            self.compute_bbox()

        with stage(3, "Select checkpoints", self.timings):
            self.select_checkpoints()

        with stage(4, "DEM map init", self.timings):
            self.init_estimator()

        with stage(5, "Insert points", self.timings):
            logger.info(f"Inserting {self.partition.n_insert} points in DEM map")
            self.insert_points()

        rows, cols = self.estimator.size()
        with stage(6, "Run estimator", self.timings):
            logger.info(f"Cell count={rows * cols:e}")
            self.estimator.solve()

        if self.partition.n_checkpoints:
            with stage(7, "Eval checkpoints", self.timings):
                chk = self.partition.checkpoint_indices
                p = self.points
                residuals = CheckpointValidator(self.estimator).evaluate(p.x[chk], p.y[chk], p.z[chk])
                stats = residuals.stats()
                predicted_std = residuals.mean_predicted_std()
                saved_files.update(writer.write_checkpoint_results(residuals, stats))
                for policy, s in stats.items():
                    logger.info(f"{policy:>8s}: RMSE={s.rmse:.4f} mean={s.mean:.4f} "
                                f"std={s.std:.4f} median={s.median:.4f} "
                                f"predicted std={predicted_std[policy]:.4f}")
        else:
            logger.info("No checkpoints selected; skipping validation")

        with stage(8, "Save output files", self.timings):
            p = self.points
            saved_files['points_map'] = str(writer.write_points(
                p.xyz(self.partition.insert_indices), SUFFIX_POINTS_MAP))
            saved_files['points_chk'] = str(writer.write_points(
                p.xyz(self.partition.checkpoint_indices), SUFFIX_POINTS_CHECKPOINTS))
            saved_files.update(self.estimator.export_representation(writer.path_for(SUFFIX_MAP)))
            saved_files['render_script'] = str(
                self.estimator.export_render_script(writer.path_for(SUFFIX_RENDER_SCRIPT)))

        if self.viewer is not None and not cfg.no_gui:
            self.viewer.show(self.estimator)

        summary = {
            'input_file': str(cfg.input_path),
            'output_prefix': cfg.output_prefix,
            'total_points': self.points.n_points,
            'inserted_points': self.partition.n_insert,
            'checkpoints': self.partition.n_checkpoints,
            'seed': self.partition.seed,
            'bbox': self.bbox,
            'grid_size': (rows, cols),
            'stats': stats,
            'predicted_std': predicted_std,
            'saved_files': saved_files,
            'timings': dict(self.timings),
        }

        logger.info("DEM estimation completed successfully!")
        return summary
