"""Chart metadata models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Maintainer:
    name: str = ""
    email: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Maintainer:
        return cls(
            name=d.get("name") or "",
            email=d.get("email") or "",
            url=d.get("url") or "",
        )


@dataclass
class ChartMetadata:
    name: str = ""
    version: str = ""
    app_version: str = ""
    description: str = ""
    home: str = ""
    icon: str = ""
    sources: list[str] = field(default_factory=list)
    maintainers: list[Maintainer] = field(default_factory=list)
    deprecated: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> ChartMetadata:
        if not d:
            return cls()
        return cls(
            name=d.get("name", ""),
            version=str(d.get("version", "")),
            app_version=str(d.get("appVersion") or ""),
            description=d.get("description") or "",
            home=d.get("home") or "",
            icon=d.get("icon") or "",
            sources=list(d.get("sources") or []),
            maintainers=[Maintainer.from_dict(m) for m in d.get("maintainers") or []],
            deprecated=bool(d.get("deprecated", False)),
        )
