"""
Reference data for recycling education.

Resin Identification Codes (RIC 1-7), per-material descriptions, sorting
tips and recycling benefits. Attached to successful scans when the
educational content feature flag is on, and served by /ric-codes.
"""

from typing import Optional

from ..models import ConfidenceLevel, EducationalContent, MaterialClassification, MaterialType, RicCodeInfo

RIC_CODES: dict[int, RicCodeInfo] = {
    1: RicCodeInfo(
        code=1,
        name="PET/PETE",
        full_name="Polyethylene Terephthalate",
        description="Clear plastic bottles, food containers",
        recyclability="Highly recyclable, widely accepted",
        common_products=["Water bottles", "Soda bottles", "Food jars"],
        educational_note="One of the most commonly recycled plastics",
    ),
    2: RicCodeInfo(
        code=2,
        name="HDPE",
        full_name="High-Density Polyethylene",
        description="Milk jugs, detergent bottles, shopping bags",
        recyclability="Widely recyclable",
        common_products=["Milk containers", "Cleaning product bottles", "Shopping bags"],
        educational_note="Very commonly accepted in curbside recycling",
    ),
    3: RicCodeInfo(
        code=3,
        name="PVC",
        full_name="Polyvinyl Chloride",
        description="Pipes, vinyl siding, some packaging",
        recyclability="Limited recycling options",
        common_products=["Pipes", "Wire insulation", "Some bottles"],
        educational_note="Difficult to recycle due to chemical additives",
    ),
    4: RicCodeInfo(
        code=4,
        name="LDPE",
        full_name="Low-Density Polyethylene",
        description="Plastic bags, squeeze bottles, lids",
        recyclability="Limited curbside, special collection often needed",
        common_products=["Plastic bags", "Bread bags", "Squeeze bottles"],
        educational_note="Often requires special drop-off locations",
    ),
    5: RicCodeInfo(
        code=5,
        name="PP",
        full_name="Polypropylene",
        description="Yogurt containers, bottle caps, straws",
        recyclability="Increasingly accepted in recycling programs",
        common_products=["Yogurt cups", "Bottle caps", "Food containers"],
        educational_note="Growing acceptance in recycling programs",
    ),
    6: RicCodeInfo(
        code=6,
        name="PS",
        full_name="Polystyrene",
        description="Styrofoam cups, takeout containers, packing peanuts",
        recyclability="Very limited recycling options",
        common_products=["Disposable cups", "Takeout containers", "Packing materials"],
        educational_note="One of the least recyclable plastics",
    ),
    7: RicCodeInfo(
        code=7,
        name="Other",
        full_name="Other plastics or mixed materials",
        description="Mixed plastics, some water bottles, electronics",
        recyclability="Generally not recyclable in standard programs",
        common_products=["Some water bottles", "Electronics", "Composite materials"],
        educational_note="Catch-all category for plastics not covered by 1-6",
    ),
}

MATERIAL_DESCRIPTIONS: dict[MaterialType, str] = {
    MaterialType.PLASTIC: "Plastic materials made from petroleum-based polymers",
    MaterialType.CARDBOARD: "Paper-based material with corrugated structure",
    MaterialType.PAPER: "Cellulose-based material from wood pulp",
    MaterialType.GLASS: "Silica-based material that can be infinitely recycled",
    MaterialType.METAL: "Steel and tin containers, recyclable without losing strength",
    MaterialType.ALUMINUM: "Lightweight metal used for cans and foil, endlessly recyclable",
    MaterialType.UNKNOWN: "Material type not recognized",
}

RECYCLING_TIPS: dict[MaterialType, list[str]] = {
    MaterialType.PLASTIC: [
        "Remove caps and lids if required by local facility",
        "Rinse containers to remove food residue",
        "Check local guidelines for accepted plastic types",
        "Avoid putting plastic bags in curbside bins",
    ],
    MaterialType.CARDBOARD: [
        "Remove all tape, staples, and plastic elements",
        "Break down boxes to save space",
        "Keep cardboard dry and clean",
        "Separate pizza boxes if greasy",
    ],
    MaterialType.PAPER: [
        "Remove plastic windows from envelopes",
        "Separate different paper types if required",
        "Avoid contamination with food or liquids",
        "Staples are usually OK to leave in",
    ],
    MaterialType.GLASS: [
        "Remove lids and caps",
        "Rinse containers clean",
        "Separate by color if required locally",
        "Be careful with broken glass",
    ],
    MaterialType.METAL: [
        "Rinse food cans before recycling",
        "Labels can usually stay on",
        "Keep aerosol cans out unless your program accepts them",
    ],
    MaterialType.ALUMINUM: [
        "Empty and rinse cans",
        "Don't crush cans if your facility sorts by shape",
        "Clean foil can be balled up and recycled",
    ],
}

ENVIRONMENTAL_BENEFITS: dict[MaterialType, str] = {
    MaterialType.PLASTIC: "Saves petroleum and reduces ocean pollution. Uses 88% less energy than making new plastic.",
    MaterialType.CARDBOARD: "Saves trees and reduces landfill waste. Uses 75% less energy than making new cardboard.",
    MaterialType.PAPER: "Preserves forests and saves water. Uses 60% less energy than making new paper.",
    MaterialType.GLASS: "Infinitely recyclable without quality loss. Uses 30% less energy than making new glass.",
    MaterialType.METAL: "Reduces mining. Recycled steel uses about 60% less energy than new steel.",
    MaterialType.ALUMINUM: "Recycling aluminum uses 95% less energy than producing it from raw materials.",
}

DEFAULT_TIPS = ["Check local recycling guidelines"]


def get_ric_info(code: Optional[int]) -> Optional[RicCodeInfo]:
    if code is None:
        return None
    return RIC_CODES.get(code)


def list_ric_codes() -> list[RicCodeInfo]:
    return [RIC_CODES[code] for code in sorted(RIC_CODES)]


def confidence_level(confidence: int) -> ConfidenceLevel:
    """Bucket a 0-100 confidence for display."""
    if confidence >= 80:
        return ConfidenceLevel.HIGH
    if confidence >= 60:
        return ConfidenceLevel.MEDIUM
    if confidence >= 40:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.VERY_LOW


def build_educational_content(classification: MaterialClassification) -> EducationalContent:
    """Learning material for one classified scan."""
    material = classification.material_type
    return EducationalContent(
        material_description=MATERIAL_DESCRIPTIONS[material],
        recycling_tips=list(RECYCLING_TIPS.get(material, DEFAULT_TIPS)),
        environmental_benefit=ENVIRONMENTAL_BENEFITS.get(material),
        ric_info=get_ric_info(classification.ric_code),
        confidence_level=confidence_level(classification.confidence),
    )
