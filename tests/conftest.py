"""Shared fixtures: in-memory PDF objects and small PDF files built with pikepdf."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pikepdf
import pytest

from drawgen.models.draw_route import Rect


@pytest.fixture()
def pdf() -> pikepdf.Pdf:
    doc = pikepdf.new()
    yield doc
    doc.close()


@pytest.fixture()
def bounds() -> Rect:
    return Rect.from_bounds(0, 0, 24, 24)


def parse(pdf: pikepdf.Pdf, data: bytes) -> list:
    """Instructions of a content stream given as raw bytes."""
    return pikepdf.parse_content_stream(pikepdf.Stream(pdf, data))


def axial_shading(c0=(1, 0, 0), c1=(0, 0, 1), extend=(False, False)) -> pikepdf.Dictionary:
    return pikepdf.Dictionary(
        ShadingType=2,
        ColorSpace=pikepdf.Name.DeviceRGB,
        Coords=[0, 0, 10, 0],
        Extend=list(extend),
        Function=pikepdf.Dictionary(FunctionType=2, Domain=[0, 1], C0=list(c0), C1=list(c1), N=1),
    )


def form_xobject(pdf: pikepdf.Pdf, data: bytes, bbox=(0, 0, 10, 10), matrix=None,
                 resources: Optional[pikepdf.Dictionary] = None) -> pikepdf.Stream:
    form = pikepdf.Stream(pdf, data)
    form.Type = pikepdf.Name.XObject
    form.Subtype = pikepdf.Name.Form
    form.BBox = list(bbox)
    if matrix is not None:
        form.Matrix = list(matrix)
    if resources is not None:
        form.Resources = resources
    return form


def write_pdf(path: Path, contents: list[bytes], size=(24, 24),
              resources: Optional[Callable[[pikepdf.Pdf], pikepdf.Dictionary]] = None) -> Path:
    """Save a PDF with one page per content stream; `resources` builds the page resources."""
    doc = pikepdf.new()
    for data in contents:
        doc.add_blank_page(page_size=size)
        page = doc.pages[-1]
        page.obj.Contents = doc.make_stream(data)
        if resources is not None:
            page.obj.Resources = resources(doc)
    doc.save(path)
    doc.close()
    return path
