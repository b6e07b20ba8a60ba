"""
Shared builders and fakes for the tilegarden tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from tilegarden.errors import StorageError
from tilegarden.models import Block, Position
from tilegarden.storage import InMemoryStorage
from tilegarden.templates import PredefinedTemplateRegistry

REGISTRY = PredefinedTemplateRegistry()

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


def make_block(block_id: str = "b1", block_type: str = "text", template_id: str = "small-rectangle",
               content: Optional[Dict[str, Any]] = None, x: int = 0, y: int = 0) -> Block:
    return Block(
        id=block_id,
        type=block_type,
        content=content if content is not None else {"text": f"Block {block_id}"},
        template=REGISTRY.get(template_id),
        position=Position(x=x, y=y),
        created_at=BASE_TIME,
        updated_at=BASE_TIME
    )


def block_id(block: Any) -> Any:
    """Id of a loaded block, whether parsed or kept as a mapping."""
    return block.get("id") if isinstance(block, dict) else block.id


def legacy_block(block_id: Any = "l1", block_type: Optional[str] = "text", w: Any = 2, h: Any = 1,
                 content: Any = None, **extra) -> Dict[str, Any]:
    record = {"id": block_id, "type": block_type, "x": 0, "y": 0, "w": w, "h": h,
              "content": content if content is not None else {"text": "Hello"}}
    record.update(extra)
    return record


class FlakyStorage(InMemoryStorage):
    """In-memory storage that fails writes to selected keys."""

    def __init__(self):
        super().__init__()
        self.fail_writes_to: List[str] = []
        self.write_log: List[str] = []

    def write(self, key: str, data: bytes) -> None:
        self.write_log.append(key)
        if key in self.fail_writes_to:
            raise StorageError(f"disk full while writing {key}")
        super().write(key, data)
