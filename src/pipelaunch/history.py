"""Run history: record of previous run names."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from pathlib import Path
import random
import re
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_ADJECTIVES = (
    "agitated", "amazing", "angry", "awesome", "berserk", "boring", "clever",
    "cheeky", "compassionate", "condescending", "cranky", "desperate",
    "determined", "distracted", "dreamy", "drunk", "ecstatic", "elated",
    "elegant", "evil", "fervent", "focused", "furious", "gigantic", "gloomy",
    "goofy", "grave", "happy", "high", "hopeful", "hungry", "infallible",
    "jolly", "jovial", "kickass", "lonely", "loving", "mad", "modest",
    "naughty", "nauseous", "nostalgic", "peaceful", "pedantic", "pensive",
    "prickly", "reverent", "romantic", "sad", "serene", "sharp", "sick",
    "silly", "sleepy", "small", "stoic", "stupefied", "suspicious", "tender",
    "thirsty", "tiny", "trusting", "voluminous", "wise", "zen",
)  # fmt: skip

_NAMES = (
    "albattani", "allen", "almeida", "archimedes", "ardinghelli", "aryabhata",
    "austin", "babbage", "banach", "bardeen", "bartik", "bassi", "bell",
    "bhabha", "bhaskara", "blackwell", "bohr", "booth", "borg", "bose",
    "boyd", "brahmagupta", "brattain", "brown", "carson", "chandrasekhar",
    "colden", "cori", "cray", "curie", "darwin", "davinci", "einstein",
    "elion", "engelbart", "euclid", "euler", "fermat", "fermi", "feynman",
    "franklin", "galileo", "gates", "goldberg", "goldstine", "golick",
    "goodall", "hamilton", "hawking", "heisenberg", "heyrovsky", "hodgkin",
    "hoover", "hopper", "hugle", "hypatia", "jang", "jennings", "jepsen",
    "joliot", "jones", "kalam", "kare", "keller", "khorana", "kilby",
    "kirch", "knuth", "kowalevski", "lalande", "lamarr", "leakey",
    "leavitt", "lichterman", "liskov", "lovelace", "lumiere", "mahavira",
    "mayer", "mccarthy", "mcclintock", "mclean", "mcnulty", "meitner",
    "meninsky", "mestorf", "minsky", "mirzakhani", "morse", "murdock",
    "newton", "nobel", "noether", "northcutt", "noyce", "panini", "pare",
    "pasteur", "payne", "perlman", "pike", "poincare", "poitras", "ptolemy",
    "raman", "ramanujan", "ride", "ritchie", "roentgen", "rosalind", "saha",
    "sammet", "shaw", "shirley", "shockley", "sinoussi", "snyder", "spence",
    "stallman", "stonebraker", "swanson", "swartz", "swirles", "tesla",
    "thompson", "torvalds", "turing", "varahamihira", "visvesvaraya",
    "volhard", "wescoff", "williams", "wilson", "wing", "wozniak", "wright",
    "yalow", "yonath",
)  # fmt: skip

_COLUMNS = (
    "timestamp",
    "duration",
    "run_name",
    "status",
    "revision_id",
    "session_id",
    "command",
)
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_DRAWS = 1_000

_ESCAPES = {"\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {v[1]: k for k, v in _ESCAPES.items()}
_ESCAPED_RE = re.compile(r"\\(.)")


def _escape(value: str) -> str:
    """Keep a field on one line and free of column separators."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def _unescape(value: str) -> str:
    return _ESCAPED_RE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(0)), value)


@runtime_checkable
class RunHistory(Protocol):
    """Store of previously used run names."""

    def check_exists_by_name(self, name: str) -> bool:
        """Whether a run with *name* is already recorded."""
        ...

    def generate_next_name(self) -> str:
        """Return a fresh mnemonic name absent from the history."""
        ...


def random_name(rng: random.Random | None = None) -> str:
    """Draw a random ``<adjective>_<name>`` mnemonic."""
    rng = rng or random.Random()
    return f"{rng.choice(_ADJECTIVES)}_{rng.choice(_NAMES)}"


@dataclass(frozen=True)
class HistoryRecord:
    """One line of the history file."""

    timestamp: str
    duration: str
    run_name: str
    status: str
    revision_id: str
    session_id: str
    command: str

    @classmethod
    def parse(cls, line: str) -> HistoryRecord | None:
        fields = line.rstrip("\n").split("\t")
        if len(fields) < len(_COLUMNS):
            return None
        head = fields[: len(_COLUMNS) - 1]
        command = "\t".join(fields[len(_COLUMNS) - 1 :])
        return cls(*(_unescape(f) for f in head), _unescape(command))

    def to_line(self) -> str:
        return "\t".join(_escape(getattr(self, c)) for c in _COLUMNS)


class HistoryFile:
    """Tab-separated history file.

    A missing file is an empty history. Names are compared exactly.
    """

    def __init__(self, path: Path, *, rng: random.Random | None = None) -> None:
        self.path = Path(path)
        self._rng = rng or random.Random()

    def records(self) -> list[HistoryRecord]:
        if not self.path.is_file():
            return []
        with self.path.open(encoding="utf-8") as f:
            parsed = (HistoryRecord.parse(line) for line in f if line.strip())
            return [r for r in parsed if r is not None]

    def names(self) -> set[str]:
        return {r.run_name for r in self.records()}

    def check_exists_by_name(self, name: str) -> bool:
        return name in self.names()

    def generate_next_name(self) -> str:
        used = self.names()
        for _ in range(_MAX_DRAWS):
            name = random_name(self._rng)
            if name not in used:
                return name
        # Every draw collided; number the last one instead.
        suffix = 2
        while f"{name}_{suffix}" in used:
            suffix += 1
        return f"{name}_{suffix}"

    def write(
        self,
        name: str,
        session_id: str,
        command: str,
        *,
        revision_id: str = "-",
        status: str = "-",
        when: datetime | None = None,
    ) -> HistoryRecord:
        """Append a record for a newly started run."""
        record = HistoryRecord(
            timestamp=(when or datetime.now()).strftime(_TIMESTAMP_FORMAT),
            duration="-",
            run_name=name,
            status=status,
            revision_id=revision_id,
            session_id=session_id,
            command=command,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.to_line() + "\n")
        logger.debug("Recorded run %s in %s", name, self.path)
        return record
