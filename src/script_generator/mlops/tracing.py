"""
MLflow spans around the pipeline stages: sources.convert, stackoverflow.search,
evidence.build and generation.run. A no-op unless MLFLOW_ENABLE_TRACING is set.
"""
import logging
from typing import Optional, Dict, Any
from contextlib import contextmanager

import mlflow

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class StageTracer:
    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.MLFLOW_ENABLE_TRACING if enabled is None else enabled
        if self.enabled:
            try:
                mlflow.set_tracking_uri(settings.MLFLOW_TRACKING_URI)
            except Exception as e:
                logger.warning(f"Failed to initialize MLflow tracing: {e}")
                self.enabled = False

    @contextmanager
    def span(self, name: str, span_type: str = "CHAIN", inputs: Optional[Dict[str, Any]] = None, **attributes: Any):
        if not self.enabled:
            yield None
            return

        with mlflow.start_span(name=name, span_type=span_type) as span:
            if inputs:
                span.set_inputs(inputs)
            if attributes:
                span.set_attributes(attributes)
            yield span

    def annotate(self, **attributes: Any):
        """Attach attributes to the active stage span, e.g. result counts known only at the end."""
        if not self.enabled:
            return
        current_span = mlflow.get_current_active_span()
        if current_span:
            current_span.set_attributes(attributes)


tracer = StageTracer()
