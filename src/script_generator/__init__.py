"""Script Generator - builds evidence documents and asks an LLM for a script.

Collects reference material from web pages and Stack Overflow, renders it to
self-contained PDFs, and sends them with a task prompt to a schema-constrained
LLM call that returns a script and its description.

Components:
- main_generate: command-line entry point
- pipeline: run orchestration
- retrieval: page fetching, image inlining, PDF conversion, Q&A search
- llm: OpenAI client and prompt construction
- store: evidence file storage
- mlops: MLflow tracing
"""
