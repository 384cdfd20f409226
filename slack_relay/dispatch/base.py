from dataclasses import dataclass, field


@dataclass
class DispatchResult:
    destination_id: str
    success: bool
    error: str | None = None


@dataclass
class DispatchReport:
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def total(self) -> int:
        # One result per requested id, duplicates included
        return len(self.results)
