import io
import string

import pytest
from PIL import Image
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import newTable
from fontTools.ttLib.tables._k_e_r_n import KernTable_format_0

from certificate_maker import FontManager, RenderConfig

UNITS_PER_EM = 1000
ASCENT = 824
DESCENT = -200
ADVANCE = 600
GLYPH_HEIGHT = 700
SIDE_BEARING = 50
KERN_AV = -200
LETTERS = string.ascii_uppercase + string.ascii_lowercase


def _box_glyph():
    pen = TTGlyphPen(None)
    pen.moveTo((SIDE_BEARING, 0))
    pen.lineTo((SIDE_BEARING, GLYPH_HEIGHT))
    pen.lineTo((ADVANCE - SIDE_BEARING, GLYPH_HEIGHT))
    pen.lineTo((ADVANCE - SIDE_BEARING, 0))
    pen.closePath()
    return pen.glyph()


def _kern_table(kern_pairs):
    subtable = KernTable_format_0()
    subtable.version = 0
    subtable.coverage = 1  # horizontal
    subtable.kernTable = dict(kern_pairs)
    table = newTable("kern")
    table.version = 0
    table.kernTables = [subtable]
    return table


def build_test_font(family="CertTest", kern_pairs=None):
    """A TrueType font where every letter is a solid box one advance wide.

    kern_pairs maps (left, right) glyph names to a kerning value in font units.
    """
    glyph_order = ['.notdef', 'space'] + list(LETTERS)
    fb = FontBuilder(UNITS_PER_EM, isTTF=True)
    fb.setupGlyphOrder(glyph_order)

    cmap = {ord(' '): 'space'}
    cmap.update({ord(c): c for c in LETTERS})
    fb.setupCharacterMap(cmap)

    glyphs = {name: _box_glyph() for name in glyph_order}
    glyphs['space'] = TTGlyphPen(None).glyph()
    fb.setupGlyf(glyphs)

    metrics = {name: (ADVANCE, SIDE_BEARING) for name in glyph_order}
    metrics['space'] = (ADVANCE, 0)
    fb.setupHorizontalMetrics(metrics)
    fb.setupHorizontalHeader(ascent=ASCENT, descent=DESCENT)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=ASCENT, sTypoDescender=DESCENT, usWinAscent=ASCENT, usWinDescent=-DESCENT)
    fb.setupPost()
    if kern_pairs:
        fb.font["kern"] = _kern_table(kern_pairs)

    buffer = io.BytesIO()
    fb.save(buffer)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def font_bytes():
    return build_test_font()


@pytest.fixture(scope="session")
def kerned_font_bytes():
    return build_test_font(family="CertTestKerned", kern_pairs={("A", "V"): KERN_AV})


@pytest.fixture
def font_path(tmp_path, font_bytes):
    path = tmp_path / "CertTest-Regular.ttf"
    path.write_bytes(font_bytes)
    return str(path)


@pytest.fixture
def font_manager(font_bytes):
    return FontManager(font_bytes, source_name="CertTest-Regular.ttf")


@pytest.fixture
def white_png(tmp_path):
    path = tmp_path / "template_rgb.png"
    Image.new("RGB", (400, 200), (255, 255, 255)).save(path)
    return str(path)


@pytest.fixture
def transparent_png(tmp_path):
    path = tmp_path / "template_rgba.png"
    Image.new("RGBA", (400, 200), (0, 0, 0, 0)).save(path)
    return str(path)


@pytest.fixture
def white_jpeg(tmp_path):
    path = tmp_path / "template.jpg"
    Image.new("RGB", (400, 200), (255, 255, 255)).save(path, format="JPEG")
    return str(path)


@pytest.fixture
def output_dir(tmp_path):
    return str(tmp_path / "out")


@pytest.fixture
def make_config(font_bytes, output_dir):
    """Build a RenderConfig with test defaults; keyword arguments override them."""
    def _make(**overrides):
        options = dict(
            font_bytes=font_bytes,
            font_size=100,
            color="black",
            position="center",
            output_dir=output_dir,
            parallelism=1,
        )
        options.update(overrides)
        return RenderConfig.from_options(**options)
    return _make


@pytest.fixture
def names_csv(tmp_path):
    def _write(rows, header="Name", filename="names.csv"):
        path = tmp_path / filename
        lines = [header] + list(rows)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _write
