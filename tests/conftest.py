import pytest

from epub_tailor.models import Entry, Profile, TextRule
from epub_tailor.profiles import ProfileTable

from tests.helpers import COMIC_META_PATTERN, OPF_WITH_COMIC_META, blotchy_jpeg, make_zip


@pytest.fixture
def log():
    return []


@pytest.fixture
def progress():
    return []


@pytest.fixture
def nst_profile():
    return Profile(
        id="nst-test",
        name="NST test",
        text_rules=(TextRule("OEBPS/content.opf", COMIC_META_PATTERN, ""),),
        remove_paths=frozenset({"oceanofpdf.com"}),
        max_width=600,
        max_height=800,
        grayscale_levels=16,
    )


@pytest.fixture
def identity_profile():
    return Profile(id="identity", name="Identity")


@pytest.fixture
def profile_table(nst_profile, identity_profile):
    return ProfileTable([nst_profile, identity_profile])


@pytest.fixture(scope="session")
def page_jpeg():
    return blotchy_jpeg(900, 1200)


@pytest.fixture
def comic_epub(page_jpeg):
    return make_zip([
        ("mimetype", b"application/epub+zip"),
        ("META-INF/container.xml", b"<container/>"),
        ("OEBPS/content.opf", OPF_WITH_COMIC_META),
        ("OEBPS/images/page1.jpg", page_jpeg),
        ("oceanofpdf.com", b"promo"),
    ])


@pytest.fixture
def text_entries():
    return [
        Entry("OEBPS/content.opf", b'<meta name="book-type" content="comic"/> some content'),
        Entry("file-to-keep.txt", b"keep me"),
        Entry("file-to-remove.txt", b"remove me"),
    ]
