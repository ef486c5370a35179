from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .content import Document
from .utils import newest_first


class DocumentCollection(Sequence[Document]):
    """Lightweight helper for working with lists of Documents in templates and code."""

    def __init__(self, documents: Iterable[Document]):
        self._documents = list(documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        return self._documents[item]

    def with_tag(self, tag: str) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if tag in d.tags)

    def drafts(self) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if d.draft)

    def published(self) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if not d.draft)

    def sorted(self) -> DocumentCollection:
        """Sort by date, newest first, breaking ties by identifier ascending."""
        return DocumentCollection(sorted(self._documents, key=newest_first))

    def latest(self, count: int = 5) -> DocumentCollection:
        return DocumentCollection(self.sorted()[:count])

    def slugs(self) -> list[str]:
        return [d.slug for d in self._documents]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"DocumentCollection({len(self._documents)} documents)"


class TaxonomyIndex(Mapping[str, DocumentCollection]):
    """Mapping of tag name to the documents carrying it.

    Tags iterate in sorted order and each collection is ordered newest
    first, so two indexes built from the same corpus compare equal item by item.
    """

    def __init__(self, mapping: Mapping[str, Iterable[Document]]):
        self._mapping = {
            tag: DocumentCollection(mapping[tag]).sorted() for tag in sorted(mapping)
        }

    def __getitem__(self, key: str) -> DocumentCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TaxonomyIndex({len(self._mapping)} tags)"
