"""
詞性標記對照表與詞典

- ICTCLAS / jieba 標記（n, nr, v, vn, a, ad, d ...）
- Penn Treebank 標記（NN, VBG, JJ, RB ...）
- 通用名稱（noun, verb, adjective ...）
- 停用詞與音效領域常用英文詞典
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from ucsmatch.core.models import PartOfSpeech

N = PartOfSpeech.NOUN
V = PartOfSpeech.VERB
A = PartOfSpeech.ADJECTIVE
D = PartOfSpeech.ADVERB
O = PartOfSpeech.OTHER

# jieba / ICTCLAS
ICTCLAS_TAGS: Dict[str, PartOfSpeech] = {
    "n": N, "nr": N, "ns": N, "nt": N, "nz": N, "ng": N, "j": N, "s": N, "t": N, "eng": N,
    "v": V, "vd": V, "vn": V, "vg": V,
    "a": A, "an": A, "ag": A,
    "ad": D, "d": D, "dg": D,
}

_PENN_PREFIX = (("NN", N), ("VB", V), ("JJ", A), ("RB", D))

_NAMED_TAGS: Dict[str, PartOfSpeech] = {p.value: p for p in PartOfSpeech}
_NAMED_TAGS.update({"adj": A, "adv": D})


def map_tag(tag: str) -> PartOfSpeech:
    """
    把各種標記體系轉成 PartOfSpeech

    依序嘗試：通用名稱 -> ICTCLAS -> Penn Treebank，都不符合時為 OTHER。
    """
    if not tag:
        return O
    lowered = tag.strip().lower()
    if lowered in _NAMED_TAGS:
        return _NAMED_TAGS[lowered]
    if lowered in ICTCLAS_TAGS:
        return ICTCLAS_TAGS[lowered]
    upper = tag.strip().upper()
    for prefix, pos in _PENN_PREFIX:
        if upper.startswith(prefix):
            return pos
    # ICTCLAS 次分類（nrfg、vshi ...）為小寫，取首字母
    head = lowered[:1]
    if head in ("n", "v", "a", "d") and tag.strip().islower() and lowered.isalpha():
        return ICTCLAS_TAGS[head]
    return O


STOPWORDS_ZH: FrozenSet[str] = frozenset(
    "的 了 和 与 或 在 中 是 有 被 将 从 给 向 把 对 为 以".split()
)
STOPWORDS_EN: FrozenSet[str] = frozenset(
    "the a an of in on at by for with about to and or but if then else when up down out as".split()
)

# 音效檔名中常見的英文詞
SOUND_LEXICON: Dict[str, PartOfSpeech] = {}

for _w in (
    "door window glass metal wood wooden plastic paper water wind rain thunder fire explosion "
    "car engine truck train plane helicopter gun bullet sword blade knife keyboard mouse phone "
    "bell clock alarm siren horn whistle footstep footsteps step steps crowd voice scream laugh "
    "cry breath heartbeat animal dog cat bird horse cow insect bee fly ambience ambient room "
    "hall forest city street traffic ocean wave waves river stream drop drops drip impact hit "
    "whoosh swoosh swish boom thud thump crash bang click beep buzz hum drone noise tone "
    "sound effect sfx foley audio music robot machine motor fan switch button lever chain "
    "rope cloth leather coin coins cash cassette tape vinyl radio tv static glitch laser "
    "magic spell ui interface notification synth bass drum snare kick cymbal guitar piano".split()
):
    SOUND_LEXICON[_w] = N

for _w in (
    "slam open close knock tap clink hit break shatter smash crack creak squeak scrape scratch "
    "rub roll drag pull push drop fall bounce splash pour fill spray blow burn explode fire "
    "shoot reload cut slice stab punch kick walk run jump land climb type press release "
    "ring rattle shake rumble roar growl bark meow chirp tweet sing speak talk whisper shout "
    "yell breathe cough sneeze eat drink chew swallow".split()
):
    SOUND_LEXICON.setdefault(_w, V)

for _w in (
    "heavy light loud quiet soft hard big small large tiny long short fast slow high low deep "
    "dark bright distant close near far wet dry metallic electric electronic digital analog "
    "old new retro vintage futuristic scifi glitchy robotic mechanical organic natural "
    "harsh smooth rough sharp dull hollow thick thin".split()
):
    SOUND_LEXICON.setdefault(_w, A)

for _w in "slowly quickly softly loudly gently heavily rapidly suddenly repeatedly".split():
    SOUND_LEXICON.setdefault(_w, D)

del _w

# 需要特別保留為動詞的擬聲動作
SPECIAL_SOUND_VERBS: FrozenSet[str] = frozenset({"clink", "tap", "knock", "hit"})
