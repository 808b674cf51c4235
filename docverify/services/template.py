# docverify/services/template.py
import logging

from docverify.config import settings
from docverify.schemas import TemplateReport
from docverify.utils.file_handler import DocumentImage
from docverify.utils.imaging import edge_map

logger = logging.getLogger("services.template")


def validate_template(doc: DocumentImage) -> TemplateReport:
    """
    Edge-density heuristic: printed documents have borders, text and photo
    boxes, so a structured card sits in a middle band of edge density. Blank
    or pure-noise images fall outside it.
    """
    try:
        edges = edge_map(doc.gray)
        density = float(edges.mean()) / 255.0

        structured = settings.EDGE_DENSITY_MIN < density < settings.EDGE_DENSITY_MAX
        score = settings.TEMPLATE_SCORE_STRUCTURED if structured else settings.TEMPLATE_SCORE_UNSTRUCTURED

        return TemplateReport(
            format_valid=True,
            template_score=round(score, 2),
            edge_density=round(density, 2),
            has_structure=density > settings.EDGE_DENSITY_MIN,
        )
    except Exception as e:
        logger.exception("Template validation failed")
        return TemplateReport(
            format_valid=False,
            template_score=settings.TEMPLATE_FALLBACK_SCORE,
            status="degraded",
            error=str(e),
        )
