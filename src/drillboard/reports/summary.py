# src/drillboard/reports/summary.py

"""
Executive summary of a consolidated report, produced by an external LLM.

The summary is optional: every failure ends in a fixed user-facing string,
never an exception reaching the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

from ..core.ports import LLMClient
from ..errors import SummaryServiceError
from .aggregator import ConsolidatedReportItem, DateLike, Report, to_date

logger = logging.getLogger(__name__)

MSG_NOT_CONFIGURED = "Error: API Key no configurada."
MSG_REQUEST_FAILED = "Error al conectar con el servicio de IA para generar el resumen."
MSG_EMPTY_RESPONSE = "No se pudo generar el resumen."

SUMMARY_SYSTEM_PROMPT = """
Actúa como un Supervisor Senior de Perforación Diamantina.
Usa un tono profesional, técnico y directo.
""".strip()


def build_summary_prompt(
    rows: Sequence[ConsolidatedReportItem | dict[str, Any]],
    start: DateLike,
    end: DateLike,
) -> str:
    data = [r.to_dict() if isinstance(r, ConsolidatedReportItem) else dict(r) for r in rows]
    payload = json.dumps(data, ensure_ascii=False, indent=2)
    return (
        "Analiza los siguientes datos consolidados de producción en el rango de fechas "
        f"{to_date(start).isoformat()} a {to_date(end).isoformat()}.\n\n"
        f"Datos:\n{payload}\n\n"
        "Genera un resumen ejecutivo breve (máximo 2 párrafos) destacando:\n"
        "1. El avance total en metros perforados (si los hay).\n"
        "2. Actividades auxiliares clave (mapeo, instalaciones, etc.).\n"
        "3. Una conclusión sobre la productividad del periodo."
    )


def summarize(
    rows: Sequence[ConsolidatedReportItem | dict[str, Any]],
    start: DateLike,
    end: DateLike,
    llm: LLMClient | None,
) -> str:
    """
    Ask the LLM for an executive summary of the report rows.

    llm=None means no credentials were configured.
    """
    if llm is None:
        logger.warning("Summary requested but no LLM is configured.")
        return MSG_NOT_CONFIGURED

    prompt = build_summary_prompt(rows, start, end)
    raw = ""
    try:
        for piece in llm.stream_chat([{"role": "user", "content": prompt}], SUMMARY_SYSTEM_PROMPT):
            raw += piece
    except SummaryServiceError as e:
        logger.warning("Summary service failed: %s", e)
        return MSG_REQUEST_FAILED
    except Exception:
        logger.exception("Summary generation crashed.")
        return MSG_REQUEST_FAILED

    text = raw.strip()
    if not text:
        return MSG_EMPTY_RESPONSE
    logger.debug("Executive summary produced len=%d", len(text))
    return text


class SummaryService:
    """
    Single-flight async front for summarize().

    - at most one outstanding request; a second call while one is running is
      rejected (returns None)
    - an empty report is never sent
    - a finished request overwrites `latest`
    """

    def __init__(self, llm: LLMClient | None) -> None:
        self.llm = llm
        self.latest: str | None = None
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def configured(self) -> bool:
        return self.llm is not None

    async def generate(self, report: Report) -> str | None:
        if not report.items:
            return None
        if self._in_flight:
            logger.info("Summary request ignored: another one is in flight.")
            return None

        self._in_flight = True
        try:
            text = await asyncio.to_thread(summarize, report.items, report.start, report.end, self.llm)
        finally:
            self._in_flight = False
        self.latest = text
        return text
