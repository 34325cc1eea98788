"""Token tagger wrapping a HuggingFace token-classification pipeline.

The tagger is the only part of the system that touches the model. Callers go
through :class:`TaggerHandle`, which loads the model at most once per process
no matter how many requests race for it.
"""
from __future__ import annotations
import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from .models import TaggedToken

log = logging.getLogger(__name__)

DEFAULT_MODEL = "dslim/bert-base-NER"
CONTINUATION_MARKER = "##"


class TaggerError(RuntimeError):
    """Base class for tagger failures."""


class ModelInitializationError(TaggerError):
    """The tagging model could not be loaded."""


class ModelInferenceError(TaggerError):
    """A tagging call failed."""


class BaseTagger(ABC):
    """Abstract base for token taggers."""

    @abstractmethod
    async def tag(self, text: str) -> list[TaggedToken]:
        ...


def token_from_raw(ent: dict) -> TaggedToken:
    """Convert one raw pipeline dict (``aggregation_strategy=None``) to a token."""
    word = str(ent.get("word", ""))
    is_continuation = word.startswith(CONTINUATION_MARKER)
    if is_continuation:
        word = word[len(CONTINUATION_MARKER):]
    start = ent.get("start")
    end = ent.get("end")
    return TaggedToken.from_tag(
        ent["entity"],
        text=word,
        confidence=float(ent["score"]),
        is_continuation=is_continuation,
        index=int(ent.get("index", 0)),
        start=int(start) if start is not None else None,
        end=int(end) if end is not None else None,
    )


class HuggingFaceTagger(BaseTagger):
    """Per-token NER via HuggingFace pipeline (e.g. dslim/bert-base-NER).

    No aggregation is applied: the pipeline returns one dict per word piece,
    with ``O`` tokens dropped by its default ignore list.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL, device: int = -1,
                 max_chars: int = 2048):
        from transformers import pipeline
        self.model_name = model_name
        self.max_chars = max_chars
        log.info("Loading HuggingFace NER model: %s (device=%d)", model_name, device)
        self.pipe = pipeline(
            "ner",
            model=model_name,
            tokenizer=model_name,
            device=device,
        )
        self._lock = threading.Lock()
        log.info("NER model loaded: %s", model_name)

    def tag_sync(self, text: str) -> list[TaggedToken]:
        if not text or not text.strip():
            return []
        try:
            with self._lock:
                raw_entities = self.pipe(text[:self.max_chars])
            # labels outside PER/ORG/LOC/MISC (e.g. B-DATE) fail here
            return [token_from_raw(ent) for ent in raw_entities]
        except Exception as e:
            raise ModelInferenceError(f"Tagging failed for {text[:40]!r}") from e

    async def tag(self, text: str) -> list[TaggedToken]:
        return await asyncio.to_thread(self.tag_sync, text)


class TaggerHandle:
    """Process-wide, lazily loaded tagger with single-flight initialization.

    The first :meth:`get` or :meth:`warm` submits the loader to a dedicated
    thread; every later caller awaits the same future. A failed load is
    reported to all waiters and the next call starts a fresh attempt.
    """

    def __init__(self, loader: Callable[[], BaseTagger]):
        self._loader = loader
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tagger-load")

    @classmethod
    def from_settings(cls, settings) -> "TaggerHandle":
        return cls(lambda: HuggingFaceTagger(
            model_name=settings.model_name,
            device=settings.device,
            max_chars=settings.max_chars,
        ))

    def _load(self) -> BaseTagger:
        try:
            return self._loader()
        except Exception as e:
            log.exception("Tagger initialization failed")
            raise ModelInitializationError(str(e)) from e

    def _ensure_started(self) -> Future:
        with self._lock:
            fut = self._future
            if fut is None or (fut.done() and fut.exception() is not None):
                fut = self._executor.submit(self._load)
                self._future = fut
            return fut

    def warm(self) -> None:
        """Start loading in the background without waiting for it."""
        self._ensure_started()

    @property
    def is_loaded(self) -> bool:
        fut = self._future
        return fut is not None and fut.done() and fut.exception() is None

    async def get(self) -> BaseTagger:
        # shield: a cancelled waiter must not cancel the shared load
        return await asyncio.shield(asyncio.wrap_future(self._ensure_started()))

    async def tag(self, text: str) -> list[TaggedToken]:
        tagger = await self.get()
        return await tagger.tag(text)
