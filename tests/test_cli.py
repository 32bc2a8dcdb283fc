import contextlib
import io
import tempfile
import threading
import unittest
from pathlib import Path
from types import SimpleNamespace

from asciicam.camera import MockCamera, PipelineCamera
from asciicam.cli import ASCIICamApp, main
from asciicam.config import AppConfig
from asciicam.display import Display
from asciicam.errors import SampleError


class RecordingDisplay(Display):
    """Display on a string buffer that stops the app after a few frames."""

    def __init__(self, stop_after=None):
        terminal = SimpleNamespace(
            number_of_colors=0,
            hide_cursor="",
            normal_cursor="",
            enter_fullscreen="",
            exit_fullscreen="",
            home="",
            clear_eol="",
        )
        super().__init__(io.StringIO(), terminal)
        self.frames = []
        self.rates = []
        self.stop_after = stop_after
        self.stop_event = threading.Event()

    def render(self, content, fps=None):
        super().render(content, fps)
        self.frames.append(content)
        self.rates.append(fps)
        if self.stop_after is not None and len(self.frames) >= self.stop_after:
            self.stop_event.set()


def make_app(config, stop_after=None):
    display = RecordingDisplay(stop_after)
    return ASCIICamApp(config, display=display, stop_event=display.stop_event), display


class ASCIICamAppTests(unittest.TestCase):
    def test_mock_session_stops_on_request(self):
        config = AppConfig(mock=True, width=8, height=4, cam_width=16, cam_height=8)
        app, display = make_app(config, stop_after=3)

        self.assertEqual(app.run(), 0)
        self.assertEqual(len(display.frames), 3)
        for frame in display.frames:
            self.assertEqual(len(frame.splitlines()), 4)
            self.assertTrue(all(len(line) == 8 for line in frame.splitlines()))
        self.assertEqual(display.rates, [None, None, None])

    def test_stop_before_first_frame(self):
        app, display = make_app(AppConfig(mock=True))
        app.stop()
        self.assertEqual(app.run(), 0)
        self.assertEqual(display.frames, [])

    def test_fps_display(self):
        config = AppConfig(mock=True, width=4, height=2, ansi=True, show_fps=True)
        app, display = make_app(config, stop_after=2)

        app.run()
        self.assertEqual(len(display.frames[0].splitlines()), 2)
        self.assertTrue(all(rate is not None for rate in display.rates))

    def test_pipeline_source_ends_cleanly(self):
        config = AppConfig(width=2, height=2, cam_width=2, cam_height=2)
        app, display = make_app(config)
        source = PipelineCamera("-c 'head -c 36 /dev/zero'", width=2, height=2, executable="sh")

        with source:
            app.render_loop(source, app.create_pipeline())

        self.assertEqual(display.frames, ["  \n  \n"] * 3)

    def test_generate_mode_records_samples(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = AppConfig(mock=True, generate=True, sample_dir=tmp, cam_width=4, cam_height=4)
            app, display = make_app(config)

            with contextlib.redirect_stdout(io.StringIO()):
                self.assertEqual(app.run(), 0)

            names = {p.name for p in Path(tmp).iterdir()}
            self.assertEqual(len(names), 101)
            self.assertIn("0.png", names)
            self.assertIn("100.png", names)
            self.assertEqual(display.frames, [])

    def test_greenscreen_uses_recorded_sample(self):
        with tempfile.TemporaryDirectory() as tmp:
            generate = AppConfig(mock=True, generate=True, sample_dir=tmp, cam_width=8, cam_height=8)
            app, _ = make_app(generate)
            with contextlib.redirect_stdout(io.StringIO()):
                app.run()

            render = AppConfig(mock=True, greenscreen=True, sample_dir=tmp, width=4, height=4)
            app, _ = make_app(render)
            pipeline = app.create_pipeline()
            self.assertTrue(pipeline.subtractor.enabled)

    def test_missing_sample_is_fatal(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = AppConfig(mock=True, greenscreen=True, sample_dir=tmp)
            app, _ = make_app(config)
            with self.assertRaises(SampleError):
                app.run()

    def test_create_source(self):
        app, _ = make_app(AppConfig(mock=True))
        self.assertIsInstance(app.create_source(), MockCamera)

        app, _ = make_app(AppConfig(gst=True, gst_pipeline="videotestsrc ! fdsink fd=1"))
        self.assertIsInstance(app.create_source(), PipelineCamera)


class MainTests(unittest.TestCase):
    def run_main(self, argv):
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            code = main(argv)
        return code, err.getvalue()

    def test_missing_pipeline_exits_non_zero(self):
        code, err = self.run_main(["--gst"])
        self.assertEqual(code, 1)
        self.assertIn("Error: --gst-pipeline is required", err)

    def test_invalid_color_exits_non_zero(self):
        code, err = self.run_main(["--mock", "--color", "purple-ish"])
        self.assertEqual(code, 1)
        self.assertIn("Invalid color", err)


if __name__ == "__main__":
    unittest.main()
