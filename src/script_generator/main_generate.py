"""Run a script generation from a YAML run file.

Usage:
    generate-script --config run.yaml [--prompt-file prompt.txt] [--output out.txt]
    python -m script_generator.main_generate --config run.yaml
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import load_run_config
from .log import setup_logging, get_logger
from .pipeline.run import RunValue, run_generation
from .schemas.outputs import GeneratedScript

logger = get_logger("main")


def render_result(result: RunValue) -> str:
    if isinstance(result, GeneratedScript):
        return f"{result.script}\n\n{result.description_of_script}"
    if isinstance(result, list):
        return json.dumps([item.model_dump() for item in result], indent=2, ensure_ascii=False)
    return str(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a script with an LLM, using web pages and Stack Overflow as evidence.")
    parser.add_argument("--config", required=True, help="YAML run file")
    parser.add_argument("--prompt-file", help="Read the generation prompt from this file instead of the run file")
    parser.add_argument("--output", help="Write the result here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    config = load_run_config(args.config)
    if args.prompt_file:
        prompt = Path(args.prompt_file).read_text(encoding="utf-8")
        config = config.model_copy(update={"generation": config.generation.model_copy(update={"prompt": prompt})})

    result = run_generation(config)
    text = render_result(result)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        logger.info(f"Result written to {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
