"""
Gradio frontend for the BI Query Assistant.

Run with: python -m scripts.gradio_app
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Tuple

import gradio as gr
import pandas as pd

# Add project root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from bi_assistant import SAMPLE_QUERIES, QueryOutcome, answer
from bi_assistant.config import configure_logging, get_settings, validate_query_text

logger = logging.getLogger(__name__)

MAX_PREVIEW_ROWS = 200

WELCOME_MESSAGE = """## 📊 BI Query Assistant

Ask a business question about **products**, **sales** and **customers** in plain English.
I'll generate one read-only SQL query, run it, and show you the results.

> Only SELECT queries are ever executed.
"""


def format_metadata(outcome: QueryOutcome) -> str:
    md = outcome.metadata
    if md is None:
        return ""
    return (
        f"*📊 {md.row_count} rows · {md.execution_time_ms} ms · "
        f"{md.query_type.value.replace('_', ' ').title()}*"
    )


def format_status(outcome: QueryOutcome) -> str:
    if outcome.success:
        lines = ["## ✅ " + outcome.message, "", format_metadata(outcome)]
        if outcome.metadata and outcome.metadata.row_count > MAX_PREVIEW_ROWS:
            lines.append(f"*Showing first {MAX_PREVIEW_ROWS} rows*")
        return "\n".join(lines)
    return f"## ⚠️ Query failed\n\n{outcome.message}"


def run_question(question: str) -> Tuple[str, str, pd.DataFrame]:
    try:
        q = validate_query_text(question)
    except ValueError as e:
        return f"## ⚠️ {e}", "", pd.DataFrame()

    outcome = answer(q)
    rows = outcome.rows[:MAX_PREVIEW_ROWS]
    columns = outcome.metadata.column_names if outcome.metadata else None
    return format_status(outcome), outcome.sql or "", pd.DataFrame(rows, columns=columns)


def create_interface() -> gr.Blocks:
    """Create and configure the Gradio interface"""
    settings = get_settings()
    model_status = f"⚡ {settings.model}" if settings.openai_api_key else "⚠️ No model configured"

    with gr.Blocks(title="BI Query Assistant") as demo:
        gr.Markdown(WELCOME_MESSAGE)
        gr.HTML(f"<span>{model_status}</span> · <span>🔒 Safe SQL Only</span>")

        with gr.Row():
            question = gr.Textbox(
                placeholder="e.g. Show me the top 5 products by revenue last quarter",
                show_label=False,
                lines=1,
                scale=5,
            )
            ask_btn = gr.Button("Ask", variant="primary", scale=1)

        gr.Markdown("**💡 Example questions (click to try)**")
        example_buttons = []
        for i in range(0, len(SAMPLE_QUERIES), 4):
            with gr.Row():
                for sample in SAMPLE_QUERIES[i:i + 4]:
                    example_buttons.append((gr.Button(sample, size="sm"), sample))

        status = gr.Markdown()
        sql_box = gr.Code(label="Generated SQL", language="sql")
        table = gr.Dataframe(label="Results", interactive=False)

        outputs = [status, sql_box, table]
        question.submit(run_question, [question], outputs)
        ask_btn.click(run_question, [question], outputs)
        for btn, sample in example_buttons:
            btn.click(lambda s=sample: (s,) + run_question(s), None, [question] + outputs)

    return demo


if __name__ == "__main__":
    configure_logging()
    logger.info("Starting BI Query Assistant (Gradio %s)", gr.__version__)

    demo = create_interface()
    demo.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False,
    )
