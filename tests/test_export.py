"""
Tests for the KRL program exporter.
"""

import io
import tempfile
import unittest
import zipfile
from pathlib import Path as FilePath

from robospline.config import Settings
from robospline.export import (
    EMBEDDED_TEMPLATES,
    encode_dat,
    encode_src,
    export_bundle,
    export_program,
    load_template,
    write_files,
)
from robospline.geometry import Path
from robospline.programs import ProgramSlot, ProgramStore


def body_lines(text):
    return [line for line in text.splitlines() if line.startswith(("DECL", "SLIN"))]


class TestEncoding(unittest.TestCase):
    """Tests for the robot program encoders."""

    def setUp(self):
        path = Path()
        path.add_point(1.5, -2.25, 30)
        path.add_point(0, 10, 45)
        self.slot = ProgramSlot(index=2, path=path, description="demo path")

    def test_dat_records(self):
        """The .dat file declares one record per point."""
        text = encode_dat(self.slot, Settings(), timestamp="T")
        self.assertEqual(
            body_lines(text),
            [
                "DECL INT POINT_COUNT=2",
                "DECL E6POS XP1={X 1.500,Y -2.250,Z 0.000}",
                "DECL REAL VP1=0.0300",
                "DECL E6POS XP2={X 0.000,Y 10.000,Z 0.000}",
                "DECL REAL VP2=0.0450",
            ],
        )
        self.assertIn("DEFDAT spline2 PUBLIC", text)
        self.assertIn(";demo path", text)

    def test_axis_mapping(self):
        """Axis labels choose the written coordinates."""
        settings = Settings(axis1="Y", axis2="Z")
        lines = body_lines(encode_dat(self.slot, settings))
        self.assertEqual(lines[1], "DECL E6POS XP1={X 0.000,Y 1.500,Z -2.250}")

    def test_src_records(self):
        """The .src file moves through every point."""
        text = encode_src(self.slot, Settings(), timestamp="T")
        self.assertEqual(
            body_lines(text),
            [
                "SLIN XP1 WITH $VEL.CP=VP1, $ORI_TYPE=#CONSTANT",
                "SLIN XP2 WITH $VEL.CP=VP2",
            ],
        )
        self.assertIn("DEF spline2( )", text)

    def test_negative_zero_is_not_written(self):
        """Negative zero is written as zero."""
        slot = ProgramSlot(index=1, path=Path.from_xy([(-0.0001, 0.0)]))
        lines = body_lines(encode_dat(slot, Settings()))
        self.assertEqual(lines[1], "DECL E6POS XP1={X 0.000,Y 0.000,Z 0.000}")

    def test_file_names_use_basename(self):
        """File names combine basename and slot index."""
        files = export_program(self.slot, Settings(basename="weld"), timestamp="T")
        self.assertEqual(sorted(files), ["weld2.dat", "weld2.src"])

    def test_custom_template(self):
        """A custom template is filled in."""
        text = encode_src(self.slot, Settings(), template="{name}|{body}")
        self.assertTrue(text.startswith("spline2|SLIN XP1"))


class TestTemplates(unittest.TestCase):
    """Tests for program templates."""

    def test_missing_template_falls_back(self):
        """A missing template falls back to the built-in one."""
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(load_template("dat", FilePath(tmp)), EMBEDDED_TEMPLATES["dat"])

    def test_shipped_templates_have_placeholders(self):
        """Shipped templates carry the placeholders."""
        for kind in ("dat", "src"):
            text = load_template(kind)
            for placeholder in ("{name}", "{description}", "{timestamp}", "{body}"):
                self.assertIn(placeholder, text)


class TestBundle(unittest.TestCase):
    """Tests for exporting several programs."""

    def test_zip_contains_every_program_and_project(self):
        """The zip holds every program and the project file."""
        store = ProgramStore(10)
        store.path.add_point(0, 0)
        store.path.add_point(10, 0)
        store.switch_to(2)
        store.switch_to(5)
        store.path.add_point(1, 1)
        data = export_bundle(store, Settings(), project_name="cell", timestamp="T")
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = sorted(zf.namelist())
        self.assertEqual(
            names, ["cell.json", "spline1.dat", "spline1.src", "spline5.dat", "spline5.src"]
        )

    def test_write_files(self):
        """Programs are written to a directory."""
        with tempfile.TemporaryDirectory() as tmp:
            written = write_files({"a.dat": "x", "a.src": "y"}, FilePath(tmp) / "out")
            self.assertEqual(len(written), 2)
            self.assertEqual((FilePath(tmp) / "out" / "a.src").read_text(), "y")


if __name__ == "__main__":
    unittest.main()
