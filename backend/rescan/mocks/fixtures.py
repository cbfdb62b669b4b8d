"""
Canned vision responses for development and testing.

Scenarios mirror the shapes real models return:
- pet_bottle: clean JSON (structured parse)
- cardboard_box: JSON wrapped in a markdown fence
- aluminum_can: JSON preceded by prose
- free_text: "key: value" prose with no JSON (fallback parse)
- low_confidence: valid JSON below the uncertainty threshold
- unreadable: nothing parsable (unknown material, uncertain)
"""

MOCK_VISION_RESPONSES: dict[str, str] = {
    "pet_bottle": (
        '{"material_type": "plastic", "ric_code": 1, "confidence": 85, '
        '"recyclable": true, "description": "Clear PET water bottle with a #1 symbol on the base"}'
    ),
    "cardboard_box": (
        "```json\n"
        '{"material_type": "corrugated cardboard", "ric_code": null, "confidence": 92, '
        '"recyclable": true, "description": "Flattened corrugated shipping box"}\n'
        "```"
    ),
    "aluminum_can": (
        "Here is my analysis of the image:\n"
        '{"material": "Aluminium", "ric": null, "confidence": 78, '
        '"recyclable": "yes", "description": "Crushed beverage can"}'
    ),
    "free_text": "material: plastic, ric: 1, confidence: 85, recyclable: yes",
    "low_confidence": (
        '{"material_type": "glass", "ric_code": null, "confidence": 12, '
        '"recyclable": true, "description": "Blurry photo, possibly a jar"}'
    ),
    "unreadable": "I'm sorry, the photo is too dark for me to make anything out.",
}
