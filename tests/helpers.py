import io
import random
import zipfile

from PIL import Image

COMIC_META_PATTERN = r'<meta name="book-type" content="comic"/>\s*'

OPF_WITH_COMIC_META = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<package xmlns="http://www.idpf.org/2007/opf" version="2.0">\n'
    '  <metadata>\n'
    '    <meta name="book-type" content="comic"/>\n'
    '    <meta name="cover" content="cover"/>\n'
    '  </metadata>\n'
    '</package>\n'
).encode("utf-8")


def make_zip(members, compression=zipfile.ZIP_DEFLATED):
    """Build an archive from ``(name, bytes)`` pairs; ``bytes=None`` adds a directory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression) as z:
        for name, content in members:
            if content is None:
                z.writestr(zipfile.ZipInfo(name), b"")
            else:
                z.writestr(name, content)
    return buf.getvalue()


def zip_members(data):
    """``[(name, bytes, compress_type)]`` in archive order."""
    with zipfile.ZipFile(io.BytesIO(data)) as z:
        return [(i.filename, z.read(i), i.compress_type) for i in z.infolist()]


def noise_image(width, height, mode="RGB", seed=0):
    rng = random.Random(seed)
    channels = len(mode)
    data = rng.randbytes(width * height * channels)
    return Image.frombytes(mode, (width, height), data)


def encode(img, fmt, **params):
    out = io.BytesIO()
    img.save(out, format=fmt, **params)
    return out.getvalue()


def noise_jpeg(width, height, quality=95, seed=0):
    return encode(noise_image(width, height, seed=seed), "JPEG", quality=quality)


def gradient_png(mode="RGB"):
    """256x1 image whose pixel x has luminance x."""
    img = Image.new(mode, (256, 1))
    if mode == "RGBA":
        img.putdata([(x, x, x, 255 - x) for x in range(256)])
    else:
        img.putdata([(x, x, x) for x in range(256)])
    return encode(img, "PNG")


def decode(data):
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class RecordingSink:
    def __init__(self):
        self.logs = []
        self.progress = []

    def on_log(self, message):
        self.logs.append(message)

    def on_progress(self, value):
        self.progress.append(value)


def blotchy_jpeg(width, height, quality=95, seed=0):
    """Smooth but detailed picture; shrinks well when downscaled."""
    img = noise_image(max(1, width // 4), max(1, height // 4), seed=seed)
    return encode(img.resize((width, height), Image.BICUBIC), "JPEG", quality=quality)
