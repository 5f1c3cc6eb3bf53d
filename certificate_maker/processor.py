"""
Main batch processor module.
Coordinates rendering one certificate per name across a bounded worker pool.
"""
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from PIL import ImageFont

from utils import helpers
from .errors import CANCELLED_REASON, ItemError, RenderFailure, RowSkipped
from .font_manager import FontManager
from .image_handler import (
    encode_image,
    ensure_output_dir,
    extension_for,
    load_template,
    output_format_for,
    write_image_atomic,
)
from .layout import resolve_position
from .logger import get_logger
from .models import BatchReport, Failure, NameRecord, RenderConfig, RenderOutcome, Success, TemplateImage
from .text_renderer import TextRenderer

logger = get_logger(__name__)


@dataclass(frozen=True)
class _BatchContext:
    """Everything a render task reads. Shared read-only by all workers."""
    config: RenderConfig
    template: TemplateImage
    font_mgr: FontManager
    font: ImageFont.FreeTypeFont
    output_format: str
    extension: str


class BatchProcessor:
    """Renders names onto a template in parallel, isolating per-row failures."""

    def __init__(self, parallelism: Optional[int] = None):
        """
        Args:
            parallelism: Worker count; overrides RenderConfig.parallelism when set.
                Use 1 for sequential, reproducible runs.
        """
        if parallelism is not None and parallelism < 1:
            raise ValueError(f"parallelism must be at least 1, got {parallelism}")
        self.parallelism = parallelism
        self._stop_event = threading.Event()

    # --- Lifecycle ---

    def request_stop(self):
        """Stop starting new rows; rows already rendering finish normally. Safe from signal handlers."""
        if not self._stop_event.is_set():
            logger.warning("Stop requested: no new rows will be started, in-flight rows will finish.")
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def _prepare(self, config: RenderConfig, template: Union[TemplateImage, str]) -> _BatchContext:
        """Load the template and font once. Any FatalSetupError aborts the batch."""
        if not isinstance(template, TemplateImage):
            template = load_template(template)
        font_mgr = FontManager(config.font_bytes, source_name=config.font_name)
        font = font_mgr.get_font(config.font_size_pt)
        output_format = output_format_for(template, config.output_format)
        ensure_output_dir(config.output_dir)
        return _BatchContext(
            config=config,
            template=template,
            font_mgr=font_mgr,
            font=font,
            output_format=output_format,
            extension=extension_for(output_format),
        )

    # --- Batch ---

    def run(self, config: RenderConfig, template: Union[TemplateImage, str],
            names: Iterable[NameRecord]) -> BatchReport:
        """
        Render every name and write one image per successful row.

        Returns a BatchReport ordered by row index. Only setup problems raise
        (FatalSetupError); everything that goes wrong for a single row is
        recorded as a Failure for that row.
        """
        records = list(names)
        self._stop_event.clear()
        ctx = self._prepare(config, template)
        workers = self.parallelism or config.parallelism
        total = len(records)

        logger.info(
            f"Generating {total} certificates with {workers} worker(s); "
            f"position {config.position}, size {config.font_size_pt}, format {ctx.output_format}"
        )

        outcomes: List[RenderOutcome] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='certmaker') as executor:
            futures = {executor.submit(self._render_record, ctx, record): record for record in records}

            for future in as_completed(futures):
                record = futures[future]
                outcome = self._collect(future, record)
                outcomes.append(outcome)

                progress = (len(outcomes) / total) * 100.0
                if isinstance(outcome, Success):
                    logger.info(f"[{progress:6.2f}%] Generated row {record.row_index}: {outcome.output_path}")
                else:
                    logger.warning(f"[{progress:6.2f}%] Failed row {record.row_index}: {outcome.reason} - {outcome.message}")

                if self._stop_event.is_set():
                    for pending in futures:
                        pending.cancel()

        report = BatchReport.from_outcomes(outcomes)
        logger.info(f"Batch complete: {report.succeeded} succeeded, {report.failed} failed, output in {config.output_dir}")
        return report

    @staticmethod
    def _collect(future, record: NameRecord) -> RenderOutcome:
        if future.cancelled():
            return Failure(record.row_index, CANCELLED_REASON, "Batch stopped before this row started")
        try:
            return future.result()
        except Exception as e:
            # _render_record converts its own errors; this only guards the pool itself.
            logger.error(f"Unexpected error collecting row {record.row_index}: {e}", exc_info=True)
            return Failure(record.row_index, RenderFailure.__name__, str(e))

    def _render_record(self, ctx: _BatchContext, record: NameRecord) -> RenderOutcome:
        """Render and write a single row. Never raises."""
        if self._stop_event.is_set():
            return Failure(record.row_index, CANCELLED_REASON, "Batch stopped before this row started")

        try:
            if record.is_blank:
                raise RowSkipped("Empty or missing name", record.row_index)

            text = record.raw_value.strip()
            filename = helpers.output_filename(record.raw_value, record.row_index, ctx.extension)
            output_path = os.path.join(ctx.config.output_dir, filename)
            self._render_to_file(ctx, text, output_path)
            return Success(record.row_index, output_path)

        except RowSkipped as e:
            logger.info(f"Row {record.row_index} skipped: {e}")
            return Failure(record.row_index, e.reason, str(e))
        except ItemError as e:
            logger.error(f"Row {record.row_index} ('{record.raw_value}') failed: {e}")
            return Failure(record.row_index, e.reason, str(e))
        except Exception as e:
            logger.error(f"Row {record.row_index} ('{record.raw_value}') failed unexpectedly: {e}", exc_info=True)
            return Failure(record.row_index, RenderFailure.__name__, str(e))

    @staticmethod
    def _render_to_file(ctx: _BatchContext, text: str, output_path: str) -> str:
        """metrics -> position -> render -> encode -> atomic write."""
        config = ctx.config
        missing = ctx.font_mgr.missing_characters(text)
        if missing:
            logger.warning(f"Font '{ctx.font_mgr.source_name}' has no glyph for {missing}; the fallback glyph is used.")

        metrics = TextRenderer.measure(ctx.font, config.font_size_pt, text)
        origin = resolve_position(config.position, metrics, ctx.template.width, ctx.template.height)
        logger.debug(
            f"Text '{text}': {metrics.width_px:.1f}x{metrics.height_px:.1f}px, drawing at ({origin.x}, {origin.y})"
        )
        image = TextRenderer.render(ctx.template, text, ctx.font, config.font_size_pt, config.color, origin)
        data = encode_image(image, ctx.output_format, ctx.template.mode)
        return write_image_atomic(data, output_path)

    # --- Single image ---

    def render_one(self, config: RenderConfig, template: Union[TemplateImage, str],
                   text: str, output_path: str) -> str:
        """
        Render one text onto the template and write it to output_path.

        Uses the same pipeline as run() but raises instead of recording
        outcomes. The output format follows the extension of output_path when
        the config does not set one.
        """
        if not (text or '').strip():
            raise RowSkipped("No text entered")

        if not isinstance(template, TemplateImage):
            template = load_template(template)
        font_mgr = FontManager(config.font_bytes, source_name=config.font_name)
        output_format = config.output_format or _format_from_extension(output_path) \
            or output_format_for(template)
        ensure_output_dir(os.path.dirname(os.path.abspath(output_path)))

        ctx = _BatchContext(
            config=config,
            template=template,
            font_mgr=font_mgr,
            font=font_mgr.get_font(config.font_size_pt),
            output_format=output_format,
            extension=extension_for(output_format),
        )
        path = self._render_to_file(ctx, text.strip(), output_path)
        logger.info(f"Text added successfully, saved to: {path}")
        return path


def _format_from_extension(path: str) -> Optional[str]:
    ext = os.path.splitext(path)[1].lower().lstrip('.')
    return {'png': 'PNG', 'jpg': 'JPEG', 'jpeg': 'JPEG'}.get(ext)
