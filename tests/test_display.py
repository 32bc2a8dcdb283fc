import io
import unittest
from types import SimpleNamespace

from asciicam.display import Display
from asciicam.palette import ColorProfile


def fake_terminal(colors=1 << 24):
    return SimpleNamespace(
        number_of_colors=colors,
        hide_cursor="<hide>",
        normal_cursor="<show>",
        enter_fullscreen="<alt>",
        exit_fullscreen="<noalt>",
        home="<home>",
        clear_eol="<eol>",
    )


class DisplayTests(unittest.TestCase):
    def test_color_profile(self):
        display = Display(io.StringIO(), fake_terminal(256))
        self.assertIs(display.color_profile(), ColorProfile.ANSI256)
        display = Display(io.StringIO(), fake_terminal(0))
        self.assertIs(display.color_profile(), ColorProfile.NONE)

    def test_session_restores_terminal_on_error(self):
        out = io.StringIO()
        display = Display(out, fake_terminal())

        with self.assertRaises(RuntimeError):
            with display.session():
                out.write("frame")
                raise RuntimeError("boom")

        text = out.getvalue()
        self.assertTrue(text.startswith("<hide><alt>frame"))
        self.assertTrue(text.endswith("<noalt><show>"))

    def test_render_from_home(self):
        out = io.StringIO()
        display = Display(out, fake_terminal())

        display.render("ab\ncd\n")
        display.render("ef\ngh\n", fps=29.6)

        self.assertEqual(out.getvalue(), "<home>ab\ncd\n<home>ef\ngh\nFPS: 30<eol>")

    def test_terminal_size_of_non_terminal(self):
        self.assertIsNone(Display.get_terminal_size(io.StringIO()))


if __name__ == "__main__":
    unittest.main()
