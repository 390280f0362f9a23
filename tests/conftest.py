import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from code_relations.completion import CompletionResult
from code_relations.config import Settings


SHOP_API_SOURCES: Dict[str, str] = {
    "shop-api/src/services/user_service.py": (
        "from .base_service import BaseService\n"
        "from ..models.user import User\n"
        "import os\n"
        "\n"
        "\n"
        "class UserService(BaseService):\n"
        "    def get_user(self, user_id):\n"
        "        return User(user_id)\n"
    ),
    "shop-api/src/services/base_service.py": (
        "class BaseService:\n"
        "    def close(self):\n"
        "        pass\n"
    ),
    "shop-api/src/models/user.py": (
        "class User:\n"
        "    def __init__(self, user_id):\n"
        "        self.user_id = user_id\n"
    ),
    "shop-api/src/settings.py": "DEBUG = True\nTIMEOUT = 30\n",
    "shop-api/web/client.ts": "export function createClient() {\n  return {};\n}\n",
    "shop-api/web/app.ts": (
        "import { createClient } from './client';\n"
        "\n"
        "export class App {\n"
        "  start() {\n"
        "    return createClient();\n"
        "  }\n"
        "}\n"
    ),
    "other-app/src/main.py": "def main():\n    pass\n",
}

# Listed in the index but never written to disk.
MISSING_FILES = ["shop-api/src/ghost.py"]


def index_entry(path: str) -> Dict[str, Any]:
    return {"hash": f"h-{path}", "chunkCount": 1, "lastIndexed": 1700000000000}


def write_index(memory_bank: Path, paths: List[str]) -> Dict[str, Any]:
    files = {path: index_entry(path) for path in paths}
    memory_bank.mkdir(parents=True, exist_ok=True)
    (memory_bank / "index-metadata.json").write_text(json.dumps({"files": files}), encoding="utf-8")
    return files


@pytest.fixture
def workspace(tmp_path) -> Path:
    """A workspace holding two projects' sources and a memory bank beside them."""
    root = tmp_path / "workspace"
    for relative, content in SHOP_API_SOURCES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def memory_bank(workspace) -> Path:
    bank = workspace / "memory-bank"
    write_index(bank, list(SHOP_API_SOURCES) + MISSING_FILES)
    return bank


@pytest.fixture
def make_settings():
    def _make(memory_bank: Optional[Path] = None, **overrides) -> Settings:
        values = {"memory_bank_path": memory_bank, "openai_api_key": None}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


class FailingGenerator:
    """Raises on every call."""

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt, options=None):
        self.calls += 1
        raise RuntimeError("generator unavailable")


class EchoGenerator:
    """Answers with a fixed description and records prompts."""

    def __init__(self, answer: str = "  Handles user accounts.  "):
        self.answer = answer
        self.prompts: List[str] = []

    async def generate(self, prompt, options=None):
        self.prompts.append(prompt)
        return CompletionResult(content=self.answer, token_usage={"total": 10})


class SlowGenerator:
    """Takes longer than any timeout used in the tests."""

    async def generate(self, prompt, options=None):
        await asyncio.sleep(5)
        return CompletionResult(content="too late")


@pytest.fixture
def failing_generator() -> FailingGenerator:
    return FailingGenerator()


@pytest.fixture
def echo_generator() -> EchoGenerator:
    return EchoGenerator()
