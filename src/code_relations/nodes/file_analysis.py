"""LangGraph node that reads and summarizes the working set in parallel batches."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..artifact import RelationNode
from ..progress import ProgressEvent
from ..state import AnalysisState, ParsedFile, PipelineContext
from ..utils.file_parsing import detect_language, normalize_path, read_source
from ..utils.logger import app_logger

logger = app_logger.bind(component="source_analyzer")

FileOutcome = Tuple[str, Optional[RelationNode], Optional[ParsedFile]]


async def _analyze_single_file(file_path: str, context: PipelineContext) -> FileOutcome:
    language = detect_language(file_path)
    if language is None:
        return "unknown_lang", None, None

    resolved = context.workspace_root / Path(normalize_path(file_path))
    try:
        content = await asyncio.to_thread(read_source, resolved)
        if content is None:
            return "not_exists", None, None
        node = context.analyzer.analyze(file_path, content, language)
    except Exception as exc:
        logger.warning(f"Error processing {file_path}: {exc}")
        return "error", None, None

    if node is None:
        return "no_content", None, None
    return "ok", node, ParsedFile(file_path=file_path, language=language, content=content)


async def parse_files(state: AnalysisState) -> Dict[str, object]:
    """Analyze each selected file; files without declarations produce no node."""

    context = state["context"]
    files = state.get("files", [])
    total = len(files)
    width = context.parse_batch_size
    batch_count = (total + width - 1) // width

    nodes: List[RelationNode] = []
    parsed_files: Dict[str, ParsedFile] = {}
    processed = 0

    logger.info(f"Parsing {total} files (parallel: {width})")
    for start in range(0, total, width):
        batch = files[start : start + width]
        context.progress.publish(
            ProgressEvent(
                phase="parsing",
                processed_files=processed,
                total_files=total,
                processed_nodes=len(nodes),
                current_file=f"Batch {start // width + 1}/{batch_count}",
            )
        )

        outcomes = await asyncio.gather(*(_analyze_single_file(path, context) for path, _ in batch))

        for status, node, parsed in outcomes:
            if node is not None and parsed is not None:
                nodes.append(node)
                parsed_files[parsed.file_path] = parsed
            else:
                context.skipped.record(status)
            processed += 1

        await asyncio.sleep(0)

    skipped = context.skipped
    logger.info(
        f"Parsing complete: {processed} processed, {len(nodes)} nodes, "
        f"skipped not_exists={skipped.not_exists} unknown_lang={skipped.unknown_lang} "
        f"no_content={skipped.no_content} error={skipped.error}"
    )
    if not nodes and skipped.not_exists:
        logger.warning(f"{skipped.not_exists} files not found under {context.workspace_root}")

    return {"nodes": nodes, "parsed_files": parsed_files, "processed_files": processed}
