import pytest

from groupbot.setutime import (
    DEFAULT_CATEGORIES,
    DEFAULT_MAXIMUM,
    ImagePool,
    cached_file,
    master_link,
    status_text,
)


def test_default_pool_settings():
    pool = ImagePool()
    assert pool.categories == ["涩图", "二次元", "风景", "车万"]
    assert pool.maximum == 10
    assert "风景" in pool
    assert "其他" not in pool


def test_size_starts_at_zero():
    pool = ImagePool(DEFAULT_CATEGORIES, DEFAULT_MAXIMUM)
    assert all(pool.size(name) == 0 for name in DEFAULT_CATEGORIES)


def test_push_pop_is_first_in_first_out():
    pool = ImagePool(["a"], 5)
    for item in ("x", "y", "z"):
        pool.push("a", item)
    assert pool.size("a") == 3
    assert [pool.pop("a") for _ in range(3)] == ["x", "y", "z"]
    assert pool.size("a") == 0


def test_pop_empty_gives_none():
    pool = ImagePool(["a"], 5)
    assert pool.pop("a") is None
    assert pool.pop("unknown") is None


def test_categories_are_independent():
    pool = ImagePool(["a", "b"], 5)
    pool.push("a", 1)
    pool.push("b", 2)
    pool.push("b", 3)
    assert pool.size("a") == 1
    assert pool.size("b") == 2
    assert pool.pop("b") == 2
    assert pool.pop("a") == 1


def test_master_link_converts_original_png():
    url = "https://i.pximg.net/img-original/img/2021/01/01/00/00/00/12345_p0.png"
    assert master_link(url) == (
        "https://i.pximg.net/img-master/img/2021/01/01/00/00/00/12345_p0_master1200.jpg"
    )


def test_master_link_leaves_other_links_alone():
    url = "https://example.com/picture.jpg"
    assert master_link(url) == url


@pytest.mark.parametrize("ext", [".jpg", ".png", ".gif"])
def test_cached_file_finds_each_extension(tmp_path, ext):
    path = tmp_path / f"42{ext}"
    path.write_bytes(b"data")
    assert cached_file(tmp_path, 42) == "file:///" + str(path)


def test_cached_file_prefers_jpg(tmp_path):
    for ext in (".gif", ".png", ".jpg"):
        (tmp_path / f"7{ext}").write_bytes(b"data")
    assert cached_file(str(tmp_path), 7).endswith("7.jpg")


def test_cached_file_prefers_png_over_gif(tmp_path):
    for ext in (".gif", ".png"):
        (tmp_path / f"7{ext}").write_bytes(b"data")
    assert cached_file(tmp_path, 7).endswith("7.png")


def test_cached_file_missing_is_empty(tmp_path):
    assert cached_file(tmp_path, 99) == ""


def test_status_text_lists_counts_in_order():
    text = status_text({"涩图": 3, "风景": None})
    assert text == "[SetuTime]\n涩图: 3\n风景: 0"


def test_status_text_empty():
    assert status_text({}) == "[SetuTime]"