"""
Metadata embedder: rewrites the Info dictionary of a composed document,
attaches catalog-level XMP on the protected path, re-applies encryption and
serializes the result.

| path        | descriptive fields   | created                 | modified | encryption        |
|-------------|----------------------|-------------------------|----------|-------------------|
| unprotected | configured constants | now                     | –        | none              |
| protected   | configured constants | original if known, else | now      | AES-256, same pw  |
|             |                      | now                     |          | as user and owner |

Everything that ends up in the catalog is set before ``encrypt()``; the
encryption pass seals it.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from io import BytesIO
from typing import Dict, Optional

from pypdf import PdfWriter
from pypdf.errors import DependencyError
from pypdf.generic import DecodedStreamObject, NameObject

from core.config.config_service import MetadataConfig, config_service
from ..exceptions.errors import ActivationError, AuthError
from ..models.output_document import DocumentMetadata, OutputDocument, PageOrigin
from ..models.source_document import SourceMetadata

logger = logging.getLogger(__name__)

_NS = {
    "x": "adobe:ns:meta/",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "xmp": "http://ns.adobe.com/xap/1.0/",
    "pdf": "http://ns.adobe.com/pdf/1.3/",
    "xmpRights": "http://ns.adobe.com/xap/1.0/rights/",
}
for _prefix, _uri in _NS.items():
    ET.register_namespace(_prefix, _uri)


def _q(prefix: str, local: str) -> str:
    return f"{{{_NS[prefix]}}}{local}"


# ------------------------------- dates ---------------------------------------

def pdf_date(dt: datetime) -> str:
    """Format *dt* as a PDF date string (``D:YYYYMMDDHHmmSS+HH'mm'``)."""
    s = dt.strftime("D:%Y%m%d%H%M%S")
    offset = dt.utcoffset()
    if offset is None:
        return s
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{s}{sign}{minutes // 60:02d}'{minutes % 60:02d}'"


def _iso(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat()


# ------------------------------ metadata -------------------------------------

def build_metadata(
    settings: MetadataConfig,
    *,
    protected: bool,
    original: Optional[SourceMetadata] = None,
    now: Optional[datetime] = None,
) -> DocumentMetadata:
    now = now or datetime.now(timezone.utc)
    created = now
    if protected and original is not None and original.created_at is not None:
        created = original.created_at
    return DocumentMetadata(
        title=settings.title,
        author=settings.author,
        subject=settings.subject,
        creator=settings.creator,
        producer=settings.producer,
        created_at=created,
        modified_at=now if protected else None,
    )


def info_dict(meta: DocumentMetadata) -> Dict[str, str]:
    info = {
        "/Title": meta.title,
        "/Author": meta.author,
        "/Subject": meta.subject,
        "/Creator": meta.creator,
        "/Producer": meta.producer,
        "/CreationDate": pdf_date(meta.created_at),
    }
    if meta.modified_at is not None:
        info["/ModDate"] = pdf_date(meta.modified_at)
    return info


def build_xmp_packet(meta: DocumentMetadata, *, pdf_version: str, copyright: str = "") -> bytes:
    """Serialize the descriptive fields as an XMP packet for the catalog."""
    xmpmeta = ET.Element(_q("x", "xmpmeta"))
    rdf = ET.SubElement(xmpmeta, _q("rdf", "RDF"))
    desc = ET.SubElement(rdf, _q("rdf", "Description"), {_q("rdf", "about"): ""})

    def _alt(tag: str, text: str) -> None:
        alt = ET.SubElement(ET.SubElement(desc, tag), _q("rdf", "Alt"))
        li = ET.SubElement(alt, _q("rdf", "li"))
        li.set("{http://www.w3.org/XML/1998/namespace}lang", "x-default")
        li.text = text

    _alt(_q("dc", "title"), meta.title)
    _alt(_q("dc", "description"), meta.subject)
    seq = ET.SubElement(ET.SubElement(desc, _q("dc", "creator")), _q("rdf", "Seq"))
    ET.SubElement(seq, _q("rdf", "li")).text = meta.author
    if copyright:
        _alt(_q("dc", "rights"), copyright)
        ET.SubElement(desc, _q("xmpRights", "Marked")).text = "True"

    ET.SubElement(desc, _q("xmp", "CreatorTool")).text = meta.creator
    ET.SubElement(desc, _q("xmp", "CreateDate")).text = _iso(meta.created_at)
    modified = meta.modified_at or meta.created_at
    ET.SubElement(desc, _q("xmp", "ModifyDate")).text = _iso(modified)
    ET.SubElement(desc, _q("xmp", "MetadataDate")).text = _iso(modified)
    ET.SubElement(desc, _q("pdf", "Producer")).text = meta.producer
    ET.SubElement(desc, _q("pdf", "PDFVersion")).text = pdf_version

    body = ET.tostring(xmpmeta, encoding="unicode")
    packet = (
        '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
        f"{body}\n"
        '<?xpacket end="w"?>'
    )
    return packet.encode("utf-8")


def attach_catalog_metadata(writer: PdfWriter, xmp: bytes) -> None:
    stream = DecodedStreamObject()
    stream.set_data(xmp)
    stream[NameObject("/Type")] = NameObject("/Metadata")
    stream[NameObject("/Subtype")] = NameObject("/XML")
    writer._root_object[NameObject("/Metadata")] = writer._add_object(stream)


# ------------------------------- embed ---------------------------------------

def embed(
    doc: OutputDocument,
    original: Optional[SourceMetadata] = None,
    password: Optional[str] = None,
    *,
    settings: Optional[MetadataConfig] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """
    Apply metadata (and encryption on the protected path) to *doc* and return
    the serialized PDF.
    """
    settings = settings or config_service.metadata
    protected = doc.origin == PageOrigin.RECONSTRUCTED
    if original is None:
        original = doc.source_metadata

    meta = build_metadata(settings, protected=protected, original=original, now=now)
    doc.writer.add_metadata(info_dict(meta))

    if protected:
        if original is not None:
            xmp = build_xmp_packet(meta, pdf_version=original.pdf_version, copyright=settings.copyright)
            attach_catalog_metadata(doc.writer, xmp)
        if not password:
            raise AuthError("Protected output needs the source password for re-encryption")
        try:
            doc.writer.encrypt(user_password=password, owner_password=password, algorithm="AES-256")
        except DependencyError as exc:
            raise ActivationError(f"Cannot re-encrypt output: {exc}") from exc
        doc.encrypted = True

    buf = BytesIO()
    doc.writer.write(buf)
    logger.debug("Serialized %d page(s), encrypted=%s", doc.page_count, doc.encrypted)
    return buf.getvalue()
