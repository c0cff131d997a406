import unittest

from src.importing.domain.sniffing import media_type_from_extension, sniff_image_type


class SniffImageTypeTests(unittest.TestCase):
    def test_recognizes_png_jpeg_gif_and_webp(self):
        self.assertEqual(sniff_image_type(b"\x89PNG\r\n\x1a\n"), "image/png")
        self.assertEqual(sniff_image_type(b"\xff\xd8\xff\xe0\x00\x10JFIF"), "image/jpeg")
        self.assertEqual(sniff_image_type(b"GIF89a\x01\x00"), "image/gif")
        self.assertEqual(sniff_image_type(b"RIFF\x24\x00\x00\x00WEBPVP8 "), "image/webp")

    def test_returns_none_for_unknown_or_short_buffers(self):
        self.assertIsNone(sniff_image_type(b""))
        self.assertIsNone(sniff_image_type(b"\xff\xd8\xff"))
        self.assertIsNone(sniff_image_type(b"<html>"))
        self.assertIsNone(sniff_image_type(b"RIFF\x24\x00\x00\x00WAVE"))

    def test_riff_without_webp_marker_is_not_an_image(self):
        self.assertIsNone(sniff_image_type(b"RIFF1234"))


class MediaTypeFromExtensionTests(unittest.TestCase):
    def test_jpg_maps_to_jpeg(self):
        self.assertEqual(media_type_from_extension(".jpg"), "image/jpeg")
        self.assertEqual(media_type_from_extension("JPG"), "image/jpeg")

    def test_other_extensions_are_used_verbatim(self):
        self.assertEqual(media_type_from_extension(".png"), "image/png")
        self.assertEqual(media_type_from_extension(".jpeg"), "image/jpeg")
        self.assertEqual(media_type_from_extension(".webp"), "image/webp")


if __name__ == "__main__":
    unittest.main()
