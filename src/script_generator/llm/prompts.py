import yaml
from pathlib import Path

PROMPTS_DIR = Path(__file__).parent / "prompt_templates"

def load_prompt(name: str) -> str:
    yaml_path = PROMPTS_DIR / f"{name}.yaml"
    if yaml_path.exists():
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)
            return data.get("content", "")

    raise FileNotFoundError(f"Prompt {name} not found in {PROMPTS_DIR}")

def build_generation_prompt(prompt: str, with_evidence: bool) -> str:
    """
    The task prompt verbatim, or wrapped in <MainQuestion> with the
    instruction to work from the attached PDFs first.
    """
    if not with_evidence:
        return prompt
    return load_prompt("evidence_instruction").replace("{prompt}", prompt).strip()
