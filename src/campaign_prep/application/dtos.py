from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class ExplainStep:
    step: str
    detail: str

    def to_dict(self) -> Dict[str, str]:
        return {"step": self.step, "detail": self.detail}


def _explain_rows(steps: List[ExplainStep]) -> List[Dict[str, str]]:
    return [row.to_dict() for row in steps]


@dataclass(frozen=True)
class PartyConfig:
    size: int = 4
    level: int = 1
    difficulty: str = "medium"

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "level": self.level, "difficulty": self.difficulty}


@dataclass(frozen=True)
class MonsterSuggestionView:
    name: str
    count: str
    source: str
    notes: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {"name": self.name, "count": self.count, "source": self.source}
        if self.notes is not None:
            row["notes"] = self.notes
        return row


@dataclass
class EncounterSuggestion:
    table_id: str
    table_title: str
    roll: int
    range: tuple[int, int]
    text: str
    encounter_type: str
    cr_bucket: str
    monster_suggestions: List[MonsterSuggestionView] = field(default_factory=list)
    needs_homebrew: bool = False
    matched_tags: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableId": self.table_id,
            "tableTitle": self.table_title,
            "roll": self.roll,
            "range": [self.range[0], self.range[1]],
            "text": self.text,
            "encounterType": self.encounter_type,
            "crBucket": self.cr_bucket,
            "monsterSuggestions": [row.to_dict() for row in self.monster_suggestions],
            "needsHomebrew": self.needs_homebrew,
            "matchedTags": {key: list(values) for key, values in self.matched_tags.items()},
        }


@dataclass
class EncounterPlan:
    budget: int
    rolls: List[int] = field(default_factory=list)
    cr_buckets: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"budget": self.budget, "rolls": list(self.rolls), "crBuckets": list(self.cr_buckets)}


@dataclass
class EncounterPrep:
    logic: Dict[str, Any]
    results: List[EncounterSuggestion] = field(default_factory=list)
    explain: List[ExplainStep] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    inputs_used: Dict[str, Any] = field(default_factory=dict)
    encounter_plan: EncounterPlan | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logic": dict(self.logic),
            "results": [row.to_dict() for row in self.results],
            "explain": _explain_rows(self.explain),
            "warnings": list(self.warnings),
            "inputsUsed": dict(self.inputs_used),
            "encounterPlan": self.encounter_plan.to_dict() if self.encounter_plan else None,
        }


@dataclass(frozen=True)
class InitiativeEntry:
    name: str
    initiative: int
    roll: int
    dex_mod: int
    source: str
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "initiative": self.initiative,
            "roll": self.roll,
            "dexMod": self.dex_mod,
            "source": self.source,
            "kind": self.kind,
        }


@dataclass
class InitiativeOrder:
    initiative_order: List[InitiativeEntry] = field(default_factory=list)
    explain: List[ExplainStep] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initiativeOrder": [row.to_dict() for row in self.initiative_order],
            "explain": _explain_rows(self.explain),
            "warnings": list(self.warnings),
        }


@dataclass
class TreasureSuggestion:
    coins: Dict[str, int] = field(default_factory=dict)
    valuables: List[str] = field(default_factory=list)
    items: List[str] = field(default_factory=list)
    explain: List[ExplainStep] = field(default_factory=list)
    inputs_used: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coins": dict(self.coins),
            "valuables": list(self.valuables),
            "items": list(self.items),
            "explain": _explain_rows(self.explain),
            "inputsUsed": dict(self.inputs_used),
            "warnings": list(self.warnings),
        }


@dataclass
class InvolvedEntry:
    id: str
    title: str
    type: str
    sources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "type": self.type, "sources": list(self.sources)}


@dataclass
class InvolvedPrep:
    logic: Dict[str, Any]
    results: List[InvolvedEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"logic": dict(self.logic), "results": [row.to_dict() for row in self.results]}


@dataclass(frozen=True)
class RecentChange:
    id: str
    title: str
    updated_at: str
    reason: str
    change: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "updatedAt": self.updated_at,
            "reason": self.reason,
            "change": self.change,
        }


@dataclass
class RecentPrep:
    logic: Dict[str, Any]
    results: List[RecentChange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"logic": dict(self.logic), "results": [row.to_dict() for row in self.results]}


@dataclass
class PrepHelpers:
    suggest_encounter: EncounterPrep
    whos_involved: InvolvedPrep
    what_changed_recently: RecentPrep

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestEncounter": self.suggest_encounter.to_dict(),
            "whosInvolved": self.whos_involved.to_dict(),
            "whatChangedRecently": self.what_changed_recently.to_dict(),
        }
