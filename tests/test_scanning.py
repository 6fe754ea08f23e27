import hashlib
import os
from pathlib import Path

import pytest

from crunchpics.exceptions import FileHashError, InvalidPathError, SetupError
from crunchpics.models import FileInfo, ScannedFile
from crunchpics.scanning import classifier as classifier_mod
from crunchpics.scanning.filesystem import DiskScanner, analyze_file
from crunchpics.scanning.hasher import FileHasher
from crunchpics.scanning.tokenizer import storable_text, tokenize_path

JPEG_MAGIC = b"\xff\xd8\xff"


# --- Hashing & Classification ---

def test_compute_file_hash(tmp_path):
    p = tmp_path / "sample.bin"
    data = b"hello world" * 10
    p.write_bytes(data)

    size, digest = FileHasher().compute(p)
    assert size == len(data)
    assert digest == hashlib.sha1(data).hexdigest()
    assert len(digest) == 40


def test_hash_is_chunk_size_independent(tmp_path):
    p = tmp_path / "sample.bin"
    p.write_bytes(os.urandom(10_000))
    assert FileHasher(chunk_size=7).compute(p) == FileHasher().compute(p)


def test_hash_other_algorithm(tmp_path):
    p = tmp_path / "sample.bin"
    p.write_bytes(b"abc")
    _, digest = FileHasher(algorithm="sha256").compute(p)
    assert digest == hashlib.sha256(b"abc").hexdigest()


def test_unknown_hash_algorithm():
    with pytest.raises(ValueError):
        FileHasher(algorithm="not-a-hash")


def test_hash_missing_file(tmp_path):
    with pytest.raises(FileHashError):
        FileHasher().compute(tmp_path / "gone.jpg")


def test_analyze_file_sniffs_content_not_extension(tmp_path, fake_classifier):
    p = tmp_path / "actually_a_jpeg.png"
    p.write_bytes(JPEG_MAGIC + b"rest")

    info = analyze_file(p, FileHasher(), fake_classifier)
    assert info == FileInfo(size=7, content_hash=hashlib.sha1(JPEG_MAGIC + b"rest").hexdigest(),
                            type_label="JPEG image data")


def test_analyze_file_wraps_classifier_os_errors(tmp_path):
    class Broken:
        def classify(self, path):
            raise PermissionError("denied")

    p = tmp_path / "a.jpg"
    p.write_bytes(b"x")
    with pytest.raises(FileHashError):
        analyze_file(p, FileHasher(), Broken())


def test_magic_classifier_requires_libmagic(monkeypatch):
    monkeypatch.setattr(classifier_mod, "magic", None)
    with pytest.raises(SetupError):
        classifier_mod.MagicClassifier()


# --- Path Tokenizer ---

def test_tokenize_against_root():
    tokens = tokenize_path("/data/pics/2020/trip/a.jpg", root="/data/pics")
    assert tokens.display_name == "a.jpg"
    assert tokens.tags == ("pics", "2020", "trip")


def test_tokenize_file_directly_in_root():
    assert tokenize_path("/data/pics/a.jpg", root="/data/pics").tags == ("pics",)


def test_tokenize_keeps_repeated_segments():
    assert tokenize_path("/x/a/a/f.jpg", root="/x").tags == ("x", "a", "a")


def test_tokenize_without_root():
    assert tokenize_path("/a/b/c.jpg").tags == ("a", "b")
    assert tokenize_path("pics/2020/c.jpg").tags == ("pics", "2020")
    assert tokenize_path("c.jpg").tags == ()


def test_tokenize_accepts_path_objects():
    tokens = tokenize_path(Path("/r/2021/work/photo.jpg"), Path("/r"))
    assert tokens.tags == ("r", "2021", "work")


@pytest.mark.parametrize("bad", ["", "/", ".."])
def test_tokenize_rejects_malformed(bad):
    with pytest.raises(InvalidPathError):
        tokenize_path(bad)


def test_tokenize_rejects_path_outside_root():
    with pytest.raises(InvalidPathError):
        tokenize_path("/elsewhere/a.jpg", root="/data/pics")


def test_invalid_path_error_is_value_error():
    assert issubclass(InvalidPathError, ValueError)


def test_undecodable_names_become_storable_text():
    folder = os.fsdecode(b"caf\xe9")
    name = os.fsdecode(b"bad\xff.jpg")

    tokens = tokenize_path(f"/pics/{folder}/{name}", root="/pics")

    assert tokens.display_name == "bad\\xff.jpg"
    assert tokens.tags == ("pics", "caf\\xe9")
    # Encodes cleanly, which sqlite needs
    tokens.display_name.encode("utf-8")


def test_storable_text_leaves_valid_names_alone():
    assert storable_text("été/日本.jpg") == "été/日本.jpg"


# --- Directory traversal ---

def test_scanner_iterates_and_skips(tmp_path, fake_classifier):
    root = tmp_path
    skip_dir = root / "skip"
    skip_dir.mkdir()
    (skip_dir / "skip.txt").write_text("skip")

    sub = root / "a"
    sub.mkdir()
    (sub / "b.txt").write_text("b")
    (root / "c.txt").write_text("c")

    scanner = DiskScanner(fake_classifier)
    files = list(scanner._iter_files(root, skip_dirs={skip_dir}))

    assert (skip_dir / "skip.txt") not in files
    assert (root / "c.txt") in files
    assert (sub / "b.txt") in files


def test_scanner_skips_symlinks(tmp_path, fake_classifier):
    real = tmp_path / "real.jpg"
    real.write_bytes(b"x")
    (tmp_path / "link.jpg").symlink_to(real)
    (tmp_path / "dirlink").symlink_to(tmp_path, target_is_directory=True)

    files = list(DiskScanner(fake_classifier)._iter_files(tmp_path, set()))
    assert files == [real]


def test_scanner_missing_root(tmp_path, fake_classifier):
    scanner = DiskScanner(fake_classifier)
    assert list(scanner.scan(tmp_path / "nope")) == []
    assert scanner.failures == []


def test_scanner_produces_records(tmp_path, fake_classifier):
    root = tmp_path / "root"
    (root / "2020").mkdir(parents=True)
    img = root / "2020" / "photo.jpg"
    img.write_bytes(JPEG_MAGIC + b"data")

    results = list(DiskScanner(fake_classifier).scan(root))

    assert len(results) == 1
    rec = results[0]
    assert isinstance(rec, ScannedFile)
    assert rec.path == img
    assert rec.root == root
    assert rec.extension == ".jpg"
    assert rec.info.type_label == "JPEG image data"
    assert rec.tokens.display_name == "photo.jpg"
    assert rec.tokens.tags == ("root", "2020")


def test_scanner_collects_unreadable_files(tmp_path, fake_classifier, monkeypatch):
    (tmp_path / "good.jpg").write_bytes(b"good")
    (tmp_path / "bad.jpg").write_bytes(b"bad")

    original = FileHasher.compute

    def flaky(self, path):
        if Path(path).name == "bad.jpg":
            raise FileHashError(f"Cannot read {path}: removed mid-scan")
        return original(self, path)

    monkeypatch.setattr(FileHasher, "compute", flaky)

    scanner = DiskScanner(fake_classifier)
    results = list(scanner.scan(tmp_path))

    assert [r.path.name for r in results] == ["good.jpg"]
    assert scanner.failures == [tmp_path / "bad.jpg"]


def test_parallel_scan_matches_sequential(tmp_path, fake_classifier):
    for d in ("a", "b", "c"):
        (tmp_path / d).mkdir()
        for i in range(3):
            (tmp_path / d / f"{i}.jpg").write_bytes(f"{d}{i}".encode())

    scanner = DiskScanner(fake_classifier)
    sequential = {r.path: r.info for r in scanner.scan(tmp_path, max_workers=1)}
    parallel = {r.path: r.info for r in scanner.scan(tmp_path, max_workers=3)}

    assert len(sequential) == 9
    assert parallel == sequential
