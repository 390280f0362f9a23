"""Attach a human-readable description to every node.

Two strategies: a deterministic template that is always available, and
generated text from a ``TextGenerator``. A generator failure for one node
degrades that node to the template; it never fails the batch or the run.
"""

from __future__ import annotations

import asyncio
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence

from ..artifact import RelationNode
from ..completion import TextGenerator
from ..progress import ProgressEvent
from ..state import AnalysisState
from ..utils.file_parsing import normalize_path
from ..utils.logger import app_logger

logger = app_logger.bind(component="description_enricher")

MAX_DESCRIPTION_LENGTH = 200
PROMPT_FUNCTION_LIMIT = 10

TYPE_LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "controller": "Controller",
        "service": "Service",
        "repository": "Repository",
        "dao": "DAO",
        "util": "Utility",
        "model": "Model",
        "component": "Component",
        "function": "Function",
        "class": "Class",
        "module": "Module",
        "config": "Config",
        "middleware": "Middleware",
        "handler": "Handler",
        "adapter": "Adapter",
        "factory": "Factory",
        "unknown": "Unknown",
    },
    "es": {
        "controller": "Controlador",
        "service": "Servicio",
        "repository": "Repositorio",
        "dao": "DAO",
        "util": "Utilidad",
        "model": "Modelo",
        "component": "Componente",
        "function": "Función",
        "class": "Clase",
        "module": "Módulo",
        "config": "Configuración",
        "middleware": "Middleware",
        "handler": "Manejador",
        "adapter": "Adaptador",
        "factory": "Fábrica",
        "unknown": "Desconocido",
    },
}

_TEMPLATES = {
    "en": '{label} "{name}" with {count} function(s)',
    "es": '{label} "{name}" con {count} función(es)',
}

_LANGUAGE_NAMES = {"en": "English", "es": "Spanish"}

BatchCallback = Callable[[int, int, int, int], None]


class DescriptionEnricher:
    """Fills ``RelationNode.description`` in bounded concurrent batches."""

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        batch_size: int = 5,
        timeout: float = 30.0,
        locale: str = "en",
        temperature: float = 0.3,
    ):
        self.generator = generator
        self.batch_size = max(batch_size, 1)
        self.timeout = timeout
        self.locale = locale if locale in TYPE_LABELS else "en"
        self.temperature = temperature

    def simple_description(self, node: RelationNode) -> str:
        label = TYPE_LABELS[self.locale].get(node.type, node.type)
        return _TEMPLATES[self.locale].format(label=label, name=node.name, count=len(node.functions))

    def build_prompt(self, node: RelationNode) -> str:
        functions = ", ".join(node.functions[:PROMPT_FUNCTION_LIMIT])
        if len(node.functions) > PROMPT_FUNCTION_LIMIT:
            functions += "..."
        filename = PurePosixPath(normalize_path(node.file_path)).name
        return (
            f"Briefly describe in {_LANGUAGE_NAMES[self.locale]} (1-2 sentences max) what this "
            f"{node.type} does, based on its name and functions:\n"
            f"Name: {node.name}\n"
            f"Type: {node.type}\n"
            f"Functions: {functions}\n"
            f"File: {filename}\n\n"
            "IMPORTANT: Reply ONLY with the description, no prefixes or explanations."
        )

    async def describe(self, node: RelationNode) -> str:
        """Generated description for one node, or the template on any failure."""

        if self.generator is None:
            return self.simple_description(node)

        try:
            result = await asyncio.wait_for(
                self.generator.generate(
                    self.build_prompt(node),
                    {"temperature": self.temperature, "task_type": "analysis"},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Description for {node.file_path} timed out after {self.timeout}s")
            return self.simple_description(node)
        except Exception as e:
            logger.warning(f"Error generating description for {node.file_path}: {e}")
            return self.simple_description(node)

        description = (result.content or "").strip()[:MAX_DESCRIPTION_LENGTH]
        if not description:
            logger.warning(f"Empty description generated for {node.file_path}")
            return self.simple_description(node)
        return description

    async def enrich(
        self,
        nodes: Sequence[RelationNode],
        use_ai: bool = True,
        on_batch: Optional[BatchCallback] = None,
    ) -> int:
        """Describe every node; returns how many nodes were processed.

        ``on_batch(batch_number, batch_count, processed, total)`` is called
        before each batch and once after the last one.
        """

        total = len(nodes)
        if not use_ai or self.generator is None:
            if use_ai:
                logger.warning("No text generator configured, using template descriptions")
            for node in nodes:
                node.description = self.simple_description(node)
            if on_batch is not None:
                on_batch(1, 1, total, total)
            return total

        batch_count = (total + self.batch_size - 1) // self.batch_size
        processed = 0
        logger.info(f"Enriching {total} nodes (parallel: {self.batch_size})")
        for start in range(0, total, self.batch_size):
            batch = list(nodes[start : start + self.batch_size])
            if on_batch is not None:
                on_batch(start // self.batch_size + 1, batch_count, processed, total)

            descriptions: List[str] = await asyncio.gather(*(self.describe(node) for node in batch))
            for node, description in zip(batch, descriptions):
                node.description = description
            processed += len(batch)

            await asyncio.sleep(0)

        if on_batch is not None:
            on_batch(batch_count, batch_count, processed, total)
        logger.info(f"Enrichment complete: {processed} nodes")
        return processed


async def enrich_nodes(state: AnalysisState) -> Dict[str, object]:
    """Give every node a description, generated or templated."""

    context = state["context"]
    nodes = state.get("nodes", [])
    total_files = len(state.get("files", []))

    def _publish(batch_number: int, batch_count: int, processed: int, total: int) -> None:
        context.progress.publish(
            ProgressEvent(
                phase="enriching",
                processed_files=total_files,
                total_files=total_files,
                processed_nodes=processed,
                total_nodes=total,
                current_file=f"Batch {batch_number}/{batch_count}",
            )
        )

    await context.enricher.enrich(nodes, use_ai=context.options.use_ai, on_batch=_publish)
    return {"nodes": nodes}
