"""
文字系統路由

把中英混合的檔名切成單一文字系統的片段，讓分析器分別處理，
例如 "键盘typing 03" -> [('zh', '键盘'), ('en', 'typing 03')]。
"""

from typing import List, Tuple

from ucsmatch.utils.text import is_cjk_char


def _is_kana(ch: str) -> bool:
    code = ord(ch)
    return 0x3040 <= code <= 0x30FF


class ScriptRouter:
    """
    文字系統路由器

    - 漢字（含日文假名）視為 'zh'
    - 其餘字元（ASCII、拉丁字母、符號）視為 'en'
    - 夾在漢字旁的純數字片段併入相鄰的 'zh' 片段
    """

    def split_by_script(self, text: str) -> List[Tuple[str, str]]:
        """
        Args:
            text: 原始文字

        Returns:
            List[Tuple[str, str]]: (文字系統, 片段) 列表
        """
        segments: List[Tuple[str, str]] = []
        current = None
        buffer: List[str] = []

        for ch in text:
            script = "zh" if is_cjk_char(ch) or _is_kana(ch) else "en"
            if script != current:
                if current is not None:
                    segments.append((current, "".join(buffer)))
                current = script
                buffer = [ch]
            else:
                buffer.append(ch)

        if buffer:
            segments.append((current, "".join(buffer)))

        return self._merge_numeric_segments(segments)

    @staticmethod
    def _merge_numeric_segments(segments: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
        """"11位" 不應被拆成 ('en', '11'), ('zh', '位')"""
        merged: List[Tuple[str, str]] = []
        i = 0
        while i < len(segments):
            script, seg = segments[i]
            is_numeric = (
                script == "en"
                and not any(c.isalpha() for c in seg)
                and any(c.isdigit() for c in seg)
            )
            if not is_numeric:
                merged.append((script, seg))
                i += 1
                continue

            prev_zh = bool(merged) and merged[-1][0] == "zh"
            next_zh = i + 1 < len(segments) and segments[i + 1][0] == "zh"
            if prev_zh:
                seg = merged.pop()[1] + seg
            if next_zh:
                seg = seg + segments[i + 1][1]
                i += 1
            merged.append(("zh" if prev_zh or next_zh else script, seg))
            i += 1

        return merged
