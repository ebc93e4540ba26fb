"""
Prompt templates for the detection and detailed assessment passes
"""

DETECTION_PROMPT = """You are an occupational safety expert. Inspect this photo and find every visible workplace safety hazard.

For each hazard return:
1. "mask": a polygon outlining the hazard area as a list of [x, y] points, at least 3 points. Coordinates are normalized between 0 and 1, with (0,0) the top-left corner and (1,1) the bottom-right corner of the image.
2. "box_2d": the enclosing box [x_min, y_min, x_max, y_max], normalized the same way.
3. "label": a short name of the hazard written in {language} (for example: unstable scaffolding, loose electrical cables, work at height without fall protection).

Answer with a JSON array of objects only, each with the keys "mask", "box_2d" and "label". If there is no hazard, answer with an empty array [].
Example:
[
  {{
    "mask": [[0.1, 0.2], [0.3, 0.2], [0.3, 0.4], [0.1, 0.4]],
    "box_2d": [0.1, 0.2, 0.3, 0.4],
    "label": "boxes stacked too high"
  }}
]
"""

DETAIL_PROMPT = """For the hazard "{label}" identified in this photo, and in the context of the photo:
Carry out a detailed risk assessment following ISO 45001 and answer in {language}, as a single JSON object only:
{{
  "risk_name": "{label}",
  "severity_score": <integer 1-5, 1 = negligible, 5 = fatal>,
  "likelihood_score": <integer 1-5, 1 = very unlikely, 5 = almost certain>,
  "risk_level_verbal_description": "explanation of the risk level from severity and likelihood, with reasons",
  "corrective_preventive_measures": ["measure 1, following the hierarchy of controls: elimination, substitution, engineering controls, administrative controls, PPE", "measure 2"],
  "international_standards_references": ["related international standards such as ISO 45001 or ISO 12100"],
  "relevant_thai_laws": ["related Thai laws, e.g. the Occupational Safety, Health and Environment Act B.E. 2554, with section numbers"],
  "kubota_standards_references": ["related Kubota standards, or an empty list when unknown"]
}}
Make sure the answer is valid JSON with exactly this structure.
"""


def detection_prompt(language: str) -> str:
    return DETECTION_PROMPT.format(language=language)


def detail_prompt(label: str, language: str) -> str:
    return DETAIL_PROMPT.format(label=label, language=language)
