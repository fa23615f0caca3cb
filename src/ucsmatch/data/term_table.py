"""
詞庫 (TermTable)

從分隔符號文字（UCS CSV）載入詞條。欄位名稱由 TermColumns 決定，
引號欄位依 RFC 4180 規則解析（欄位內可含分隔符號，引號以連續兩個 "" 表示）。
"""

from __future__ import annotations

import csv
import io
import re
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ucsmatch.config import TermColumns
from ucsmatch.core.errors import FormatError
from ucsmatch.core.models import TermRecord
from ucsmatch.utils.logger import get_logger

_SYNONYM_SPLIT_RE = re.compile(r"[,，、]")


def parse_synonyms(raw: Optional[str]) -> Tuple[str, ...]:
    """逗號分隔的同義詞字串 -> tuple（保留原順序、去重）"""
    if not raw:
        return ()
    seen = set()
    out: List[str] = []
    for part in _SYNONYM_SPLIT_RE.split(raw):
        value = part.strip()
        if value and value.lower() not in seen:
            seen.add(value.lower())
            out.append(value)
    return tuple(out)


class TermTable:
    """
    詞庫

    載入失敗時保持「空但有效」的狀態（loaded=False），
    下游比對一律得到「無匹配」而不是例外。
    """

    def __init__(self, columns: Optional[TermColumns] = None, delimiter: str = ","):
        self._columns = columns or TermColumns()
        self._delimiter = delimiter
        self._terms: List[TermRecord] = []
        self._loaded = False
        self._revision = 0
        self._logger = get_logger("data.terms")

    @classmethod
    def from_records(cls, records: Iterable[TermRecord], columns: Optional[TermColumns] = None) -> "TermTable":
        table = cls(columns=columns)
        table._replace(list(records))
        return table

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        columns: Optional[TermColumns] = None,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ) -> "TermTable":
        table = cls(columns=columns, delimiter=delimiter)
        table.load(Path(path).read_text(encoding=encoding))
        return table

    @property
    def columns(self) -> TermColumns:
        return self._columns

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def revision(self) -> int:
        """每次成功載入或清空都會遞增，供索引判斷是否需要重建"""
        return self._revision

    @property
    def terms(self) -> Tuple[TermRecord, ...]:
        return tuple(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self) -> Iterator[TermRecord]:
        return iter(tuple(self._terms))

    def _replace(self, terms: List[TermRecord]) -> None:
        self._terms = terms
        self._loaded = True
        self._revision += 1

    def clear(self) -> None:
        self._terms = []
        self._loaded = False
        self._revision += 1

    def load(self, text: str) -> List[TermRecord]:
        """
        解析分隔符號文字並取代目前內容

        Args:
            text: 含標題列的 CSV 文字

        Returns:
            載入的詞條（來源或目標片語為空的列會被略過）

        Raises:
            FormatError: 文字為空或缺少必要欄位；此時詞庫被清空且 loaded=False
        """
        try:
            terms = self._parse(text)
        except FormatError:
            self.clear()
            self._logger.error("詞庫載入失敗", exc_info=True)
            raise

        self._replace(terms)
        self._logger.info("詞庫載入完成: %d 筆詞條", len(terms))
        return list(terms)

    def _parse(self, text: str) -> List[TermRecord]:
        if not text or not text.strip():
            raise FormatError("詞庫內容為空")

        reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=self._delimiter)
        header: Optional[Sequence[str]] = None
        for row in reader:
            if any(cell.strip() for cell in row):
                header = [cell.strip() for cell in row]
                break
        if header is None:
            raise FormatError("詞庫缺少標題列")

        index: Dict[str, int] = {}
        for i, name in enumerate(header):
            index.setdefault(name, i)

        missing = [name for name in self._columns.required if name not in index]
        if missing:
            raise FormatError(f"詞庫缺少必要欄位: {', '.join(missing)}")

        cols = self._columns

        def cell(row: Sequence[str], name: str) -> str:
            i = index.get(name)
            if i is None or i >= len(row):
                return ""
            return row[i].strip()

        terms: List[TermRecord] = []
        skipped = 0
        for row in reader:
            if not any(c.strip() for c in row):
                continue
            source = cell(row, cols.source)
            target = cell(row, cols.target)
            if not source or not target:
                skipped += 1
                continue
            terms.append(
                TermRecord(
                    source=source,
                    target=target,
                    category_id=cell(row, cols.category_id),
                    category_name=cell(row, cols.category_name),
                    category_name_localized=cell(row, cols.category_name_localized),
                    category_short=cell(row, cols.category_short),
                    synonyms=parse_synonyms(cell(row, cols.synonyms)),
                    synonyms_localized=parse_synonyms(cell(row, cols.synonyms_localized)),
                )
            )

        if skipped:
            self._logger.debug("略過 %d 筆缺少來源或目標片語的列", skipped)
        return terms

    # 查詢

    def get_by_category_id(self, category_id: str) -> List[TermRecord]:
        if not category_id:
            return []
        return [t for t in self._terms if t.category_id == category_id]

    def find_by_category_id(self, category_id: str) -> Optional[TermRecord]:
        for term in self._terms:
            if term.category_id == category_id:
                return term
        return None

    def has_category_id(self, category_id: str) -> bool:
        return self.find_by_category_id(category_id) is not None

    def categories(self) -> List[str]:
        """依出現順序列出不重複的主分類名稱"""
        seen: Dict[str, None] = {}
        for term in self._terms:
            if term.category_name:
                seen.setdefault(term.category_name, None)
        return list(seen)

    def get_by_category(self, category: Optional[str] = None) -> List[TermRecord]:
        """主分類名稱下的所有詞條；category 為空時回傳全部"""
        if not category:
            return list(self._terms)
        return [t for t in self._terms if t.category_name == category]
