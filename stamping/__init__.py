"""
Stamping feature.

Normalizes images, DOCX documents and PDFs (plain or password-protected) into
PDF outputs, overlays every page with a fixed constellation of unique
verification QR codes and rewrites provenance metadata.
"""
