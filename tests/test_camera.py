import unittest
from unittest import mock

import cv2
import numpy as np

from asciicam import camera
from asciicam.camera import DeviceCamera, MockCamera, PipelineCamera, decode_fourcc
from asciicam.errors import CaptureError, ConfigError, EndOfStream, SourceStartError
from asciicam.frames import PixelFormat


def fake_capture(fourcc="YUYV", width=320, height=180, opened=True):
    """A stand-in for cv2.VideoCapture reporting fixed negotiated values."""
    values = {
        cv2.CAP_PROP_FOURCC: float(cv2.VideoWriter_fourcc(*fourcc)),
        cv2.CAP_PROP_FRAME_WIDTH: float(width),
        cv2.CAP_PROP_FRAME_HEIGHT: float(height),
    }
    cap = mock.MagicMock()
    cap.isOpened.return_value = opened
    cap.get.side_effect = lambda prop: values.get(prop, 0.0)
    cap.set.return_value = True
    return cap


class DeviceCameraTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.object(camera.sys, "platform", "linux")
        patcher.start()
        self.addCleanup(patcher.stop)

    def open_camera(self, cap, **kwargs):
        with mock.patch.object(camera.cv2, "VideoCapture", return_value=cap):
            cam = DeviceCamera("/dev/video9", **kwargs)
            cam.open()
        return cam

    def test_uses_negotiated_size(self):
        cap = fake_capture(width=320, height=180)
        cam = self.open_camera(cap, width=640, height=480)

        self.assertEqual(cam.resolution, (320, 180))
        cap.set.assert_any_call(cv2.CAP_PROP_BUFFERSIZE, 1)
        cap.set.assert_any_call(cv2.CAP_PROP_CONVERT_RGB, 0)

    def test_rejects_device_without_yuyv(self):
        cap = fake_capture(fourcc="MJPG")
        with self.assertRaises(SourceStartError):
            self.open_camera(cap)
        cap.release.assert_called_once()

    def test_unopenable_device(self):
        with self.assertRaises(SourceStartError):
            self.open_camera(fake_capture(opened=False))

    def test_non_linux_platform(self):
        with mock.patch.object(camera.sys, "platform", "darwin"):
            with self.assertRaises(SourceStartError):
                DeviceCamera().open()

    def test_timeout_returns_none(self):
        cap = fake_capture()
        cam = self.open_camera(cap)
        cap.grab.return_value = False

        with self.assertLogs("asciicam.camera", level="WARNING"):
            self.assertIsNone(cam.read())

    def test_wait_failure_on_closed_device_is_fatal(self):
        cap = fake_capture()
        cam = self.open_camera(cap)
        cap.grab.return_value = False
        cap.isOpened.return_value = False

        with self.assertRaises(CaptureError):
            cam.read()

    def test_empty_frame_is_skipped(self):
        cap = fake_capture()
        cam = self.open_camera(cap)
        cap.grab.return_value = True
        cap.retrieve.return_value = (True, np.zeros((0,), dtype=np.uint8))

        self.assertIsNone(cam.read())

    def test_retrieve_failure_is_fatal(self):
        cap = fake_capture()
        cam = self.open_camera(cap)
        cap.grab.return_value = True
        cap.retrieve.return_value = (False, None)

        with self.assertRaises(CaptureError):
            cam.read()

    def test_raw_yuyv_frame(self):
        cap = fake_capture(width=4, height=2)
        cam = self.open_camera(cap)
        cap.grab.return_value = True
        cap.retrieve.return_value = (True, np.full((2, 4, 2), 128, dtype=np.uint8))

        frame = cam.read()
        self.assertIs(frame.pixel_format, PixelFormat.YUYV422)
        self.assertEqual((frame.width, frame.height), (4, 2))
        self.assertEqual(len(frame.data), 16)

    def test_converted_bgr_frame(self):
        cap = fake_capture(width=2, height=1)
        cam = self.open_camera(cap)
        bgr = np.zeros((1, 2, 3), dtype=np.uint8)
        bgr[..., 0] = 255
        cap.grab.return_value = True
        cap.retrieve.return_value = (True, bgr)

        frame = cam.read()
        self.assertIs(frame.pixel_format, PixelFormat.RGB888)
        self.assertEqual(frame.data, bytes([0, 0, 255, 0, 0, 255]))

    def test_read_before_open(self):
        with self.assertRaises(CaptureError):
            DeviceCamera().read()

    def test_close_releases(self):
        cap = fake_capture()
        cam = self.open_camera(cap)
        cam.close()
        cam.close()
        cap.release.assert_called_once()
        self.assertIsNone(cam._cap)

    def test_decode_fourcc(self):
        self.assertEqual(decode_fourcc(cv2.VideoWriter_fourcc(*"YUYV")), "YUYV")


class PipelineCameraTests(unittest.TestCase):
    def shell_source(self, script, width=2, height=2):
        # "sh -e -c <script>" stands in for "gst-launch-1.0 -e <pipeline>"
        return PipelineCamera(f"-c '{script}'", width=width, height=height, executable="sh")

    def test_command_line(self):
        cam = PipelineCamera("videotestsrc ! video/x-raw,format=RGB ! fdsink fd=1")
        self.assertEqual(
            cam.command,
            ["gst-launch-1.0", "-e", "videotestsrc", "!", "video/x-raw,format=RGB", "!", "fdsink", "fd=1"],
        )

    def test_frame_size(self):
        self.assertEqual(PipelineCamera("fakesrc", width=4, height=3).frame_size, 36)

    def test_stream_ending_on_frame_boundary(self):
        with self.shell_source("head -c 24 /dev/zero") as cam:
            frames = [cam.read(), cam.read()]
            with self.assertRaises(EndOfStream):
                cam.read()

        self.assertEqual(len(frames), 2)
        for frame in frames:
            self.assertIs(frame.pixel_format, PixelFormat.RGB888)
            self.assertEqual(frame.data, bytes(12))

    def test_end_of_stream_raised(self):
        with self.shell_source("head -c 12 /dev/zero") as cam:
            self.assertIsNotNone(cam.read())
            with self.assertRaises(EndOfStream):
                cam.read()

    def test_truncated_final_frame_ends_stream(self):
        with self.shell_source("head -c 18 /dev/zero") as cam:
            self.assertIsNotNone(cam.read())
            with self.assertLogs("asciicam.camera", level="WARNING"):
                with self.assertRaises(EndOfStream):
                    cam.read()

    def test_read_failure_is_fatal(self):
        process = mock.MagicMock()
        process.stdout.read.side_effect = [bytes(5), OSError("broken pipe")]
        process.poll.return_value = None

        with mock.patch.object(camera.subprocess, "Popen", return_value=process):
            cam = PipelineCamera("fakesrc", width=2, height=2)
            cam.open()

        with self.assertRaises(CaptureError) as ctx:
            cam.read()
        self.assertIsInstance(ctx.exception.__cause__, OSError)

    def test_close_runs_once(self):
        process = mock.MagicMock()
        process.poll.return_value = None

        with mock.patch.object(camera.subprocess, "Popen", return_value=process):
            cam = PipelineCamera("fakesrc")
            cam.open()

        cam.close()
        cam.close()

        process.stdout.close.assert_called_once()
        process.kill.assert_called_once()
        process.wait.assert_called_once()

    def test_close_kills_running_process(self):
        cam = self.shell_source("sleep 30")
        cam.open()
        process = cam._process
        cam.close()
        self.assertIsNotNone(process.returncode)
        with self.assertRaises(CaptureError):
            cam.read()

    def test_missing_executable(self):
        cam = PipelineCamera("videotestsrc", executable="/nonexistent/gst-launch-1.0")
        with self.assertRaises(SourceStartError):
            cam.open()

    def test_missing_pipeline(self):
        with self.assertRaises(ConfigError):
            PipelineCamera("  ")

    def test_malformed_pipeline(self):
        with self.assertRaises(ConfigError):
            PipelineCamera("videotestsrc ! 'unterminated")


class MockCameraTests(unittest.TestCase):
    def test_frames_are_rgb888(self):
        with MockCamera(width=8, height=4) as cam:
            frame = cam.read()
        self.assertIs(frame.pixel_format, PixelFormat.RGB888)
        self.assertEqual(len(frame.data), 8 * 4 * 3)

    def test_checkerboard_pattern(self):
        with MockCamera(width=64, height=64, pattern="checkerboard") as cam:
            data = np.frombuffer(cam.read().data, dtype=np.uint8)
        self.assertEqual(set(np.unique(data).tolist()), {0, 255})

    def test_closed_camera(self):
        with self.assertRaises(CaptureError):
            MockCamera().read()

    def test_unknown_pattern(self):
        with self.assertRaises(ConfigError):
            MockCamera(pattern="plaid")


if __name__ == "__main__":
    unittest.main()
