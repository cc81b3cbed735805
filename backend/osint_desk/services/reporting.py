import csv
import io
import json
import textwrap
import uuid
from datetime import datetime
from typing import Any

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas
from sqlmodel import Session

from osint_desk.core.clock import isoformat_z, utcnow
from osint_desk.core.config import settings
from osint_desk.core.errors import ValidationError
from osint_desk.services import timeline
from osint_desk.services.cases import get_case
from osint_desk.services.entities import list_entities_by_case
from osint_desk.services.relationships import list_relationships_by_case

EXPORT_FORMATS = {
    "json": "application/json",
    "csv": "text/csv",
    "markdown": "text/markdown",
    "pdf": "application/pdf",
}

ENTITY_CSV_COLUMNS = [
    "id",
    "type",
    "label",
    "risk_level",
    "confidence_score",
    "source_attribution",
    "tags",
    "notes",
    "created_at",
]


def _ts(dt: datetime | None) -> str:
    return isoformat_z(dt)


def case_bundle(session: Session, case_id: uuid.UUID) -> dict[str, Any]:
    case = get_case(session, case_id)
    entities = list_entities_by_case(session, case_id)
    relationships = list_relationships_by_case(session, case_id)
    events = timeline.list_events(session, case_id)
    return {
        "case": case,
        "entities": entities,
        "relationships": relationships,
        "timeline": events,
    }


def build_case_report_markdown(session: Session, case_id: uuid.UUID) -> str:
    bundle = case_bundle(session, case_id)
    case = bundle["case"]
    entities = bundle["entities"]
    labels = {e.id: e.label for e in entities}

    md = []
    md.append(f"# Investigation Report: {case.title}")
    md.append("")
    md.append("## Summary")
    md.append("")
    md.append(f"- **Case:** {case.id}")
    md.append(f"- **Status:** {case.status}")
    md.append(f"- **Tags:** {', '.join(case.tags) if case.tags else '-'}")
    md.append(f"- **Created:** {_ts(case.created_at)}")
    md.append(f"- **Updated:** {_ts(case.updated_at)}")
    md.append(f"- **Generated:** {_ts(utcnow())} by {settings.report_author}")
    md.append("")
    if case.description:
        md.append(case.description)
        md.append("")

    md.append("## Entities")
    md.append("")
    if not entities:
        md.append("_No entities recorded._")
    else:
        by_type: dict[str, list] = {}
        for e in entities:
            by_type.setdefault(e.type, []).append(e)
        for t in sorted(by_type):
            md.append(f"### {t}")
            for e in by_type[t]:
                line = f"- `{e.label}` | risk={e.risk_level} | confidence={e.confidence_score}"
                if e.source_attribution:
                    line += f" | source={e.source_attribution}"
                md.append(line)
                for k, v in sorted((e.data or {}).items()):
                    md.append(f"  - {k}: {v}")
            md.append("")

    md.append("## Relationships")
    md.append("")
    if not bundle["relationships"]:
        md.append("_No relationships recorded._")
    else:
        for r in bundle["relationships"]:
            src = labels.get(r.source_entity_id, str(r.source_entity_id))
            tgt = labels.get(r.target_entity_id, str(r.target_entity_id))
            md.append(f"- `{src}` **{r.relationship_type}** `{tgt}` (strength {r.strength})")
    md.append("")

    md.append("## Notes")
    md.append("")
    md.append(case.notes or "_No notes._")
    md.append("")

    md.append("## Timeline")
    md.append("")
    if not bundle["timeline"]:
        md.append("_No timeline events._")
    else:
        for ev in bundle["timeline"]:
            md.append(f"- `{_ts(ev.ts)}` **{ev.event_type}**: {ev.message}")
    md.append("")

    return "\n".join(md).strip() + "\n"


def _bundle_json(bundle: dict[str, Any]) -> str:
    payload = {
        "case": bundle["case"].model_dump(mode="json", exclude={"idempotency_key"}),
        "entities": [
            e.model_dump(mode="json", exclude={"idempotency_key", "label_key"}) for e in bundle["entities"]
        ],
        "relationships": [
            r.model_dump(mode="json", exclude={"idempotency_key"}) for r in bundle["relationships"]
        ],
        "timeline": [ev.model_dump(mode="json") for ev in bundle["timeline"]],
        "exported_at": _ts(utcnow()),
    }
    return json.dumps(payload, indent=2, sort_keys=True)


def _entities_csv(session: Session, case_id: uuid.UUID) -> str:
    get_case(session, case_id)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(ENTITY_CSV_COLUMNS)
    for e in list_entities_by_case(session, case_id):
        writer.writerow(
            [
                str(e.id),
                e.type,
                e.label,
                e.risk_level,
                e.confidence_score,
                e.source_attribution or "",
                ";".join(e.tags or []),
                e.notes or "",
                _ts(e.created_at),
            ]
        )
    return buf.getvalue()


def export_case(session: Session, case_id: uuid.UUID, fmt: str) -> tuple[bytes, str, str]:
    """Render a case as (content, media type, filename)."""
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"format must be one of: {', '.join(EXPORT_FORMATS)}", field="format")

    if fmt == "json":
        content = _bundle_json(case_bundle(session, case_id)).encode("utf-8")
        ext = "json"
    elif fmt == "csv":
        content = _entities_csv(session, case_id).encode("utf-8")
        ext = "csv"
    elif fmt == "markdown":
        content = build_case_report_markdown(session, case_id).encode("utf-8")
        ext = "md"
    else:
        content = markdown_to_pdf_bytes(build_case_report_markdown(session, case_id))
        ext = "pdf"

    return content, EXPORT_FORMATS[fmt], f"case_{case_id}.{ext}"


def markdown_to_pdf_bytes(markdown: str) -> bytes:
    # Render as wrapped plain text; no markdown layout.
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=LETTER)
    width, height = LETTER

    left = 54
    top = height - 54
    line_height = 12
    y = top

    text = markdown.replace("\t", "  ")
    lines: list[str] = []
    for raw in text.splitlines():
        if raw.strip() == "":
            lines.append("")
            continue
        wrapped = textwrap.wrap(raw, width=95)
        if not wrapped:
            lines.append("")
        else:
            lines.extend(wrapped)

    c.setFont("Helvetica", 10)

    for line in lines:
        if y <= 54:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = top
        c.drawString(left, y, line[:2000])
        y -= line_height

    c.save()
    return buf.getvalue()
