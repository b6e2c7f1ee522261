"""Domain entity for departments and their historical spellings."""

from dataclasses import dataclass, field


@dataclass
class Department:
    name: str  # canonical
    category: str = ""
    original_names: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    id: int | None = None

    def variants(self) -> list[str]:
        """Canonical name first, then every distinct original spelling."""
        seen = {self.name.lower()}
        out = [self.name]
        for name in self.original_names:
            if name and name.lower() not in seen:
                seen.add(name.lower())
                out.append(name)
        return out
