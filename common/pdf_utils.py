# common/pdf_utils.py
import logging
from io import BytesIO

from django.http import HttpResponse
from django.template.loader import get_template
from xhtml2pdf import pisa

log = logging.getLogger(__name__)


class PdfRenderError(Exception):
    pass


def render_html_to_pdf_bytes(template_name: str, context: dict) -> bytes:
    """
    Render a Django template to PDF bytes using xhtml2pdf.
    Raises PdfRenderError if pisa reports errors.
    """
    template = get_template(template_name)
    html = template.render(context)

    result = BytesIO()
    pisa_status = pisa.CreatePDF(html, dest=result, encoding="utf-8")

    if pisa_status.err:
        log.error("PDF render failed for %s (%s errors)", template_name, pisa_status.err)
        raise PdfRenderError(f"Could not render {template_name}")

    return result.getvalue()


def pdf_response(pdf_bytes: bytes, filename: str, inline: bool = False) -> HttpResponse:
    resp = HttpResponse(pdf_bytes, content_type="application/pdf")
    disposition = "inline" if inline else "attachment"
    resp["Content-Disposition"] = f'{disposition}; filename="{filename}"'
    return resp
