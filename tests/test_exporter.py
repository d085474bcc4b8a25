import csv
import io
from datetime import date

import pytest

from wp_canva.engine import ImageStatus, Item
from wp_canva.engine.exporter import (
    ColumnLayout,
    FileExporter,
    build_rows,
    export_filename,
    serialize,
)


def _item(**overrides) -> Item:
    base = {
        "id": 1,
        "title": "Original",
        "permalink": "https://example.com/original/",
        "image_url": "https://example.com/original.jpg",
        "image_status": ImageStatus.CANVA_OK,
    }
    base.update(overrides)
    return Item(**base)


def test_build_rows_prefers_optimized_title():
    items = [_item(optimized_title="Better"), _item(id=2, title="Plain")]
    rows = build_rows(items, ["Title", "Image_URL"])
    assert rows == [
        {"Title": "Better", "Image_URL": "https://example.com/original.jpg"},
        {"Title": "Plain", "Image_URL": "https://example.com/original.jpg"},
    ]


def test_build_rows_unknown_column_is_empty():
    rows = build_rows([_item()], ["Title", "Foo"])
    assert rows == [{"Title": "Original", "Foo": ""}]


def test_build_rows_extra_columns():
    rows = build_rows(
        [_item(optimized_title="Better")],
        ["Original_Title", "Optimized_Title", "URL", "Image", "Image_Status"],
    )
    assert rows[0] == {
        "Original_Title": "Original",
        "Optimized_Title": "Better",
        "URL": "https://example.com/original/",
        "Image": "https://example.com/original.jpg",
        "Image_Status": "canva_ok",
    }


def test_serialize_quotes_special_characters():
    items = [_item(title='Say "hi", then\nleave'), _item(id=2, image_url=None)]
    columns = ["Title", "Image", "URL"]
    payload = serialize(build_rows(items, columns), columns)
    text = payload.decode("utf-8")
    assert text.splitlines()[0] == "Title,Image,URL"
    assert '"Say ""hi"", then\nleave"' in text
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[1][0] == 'Say "hi", then\nleave'
    assert parsed[2] == ["Original", "", "https://example.com/original/"]


def test_serialize_keeps_collection_order_and_unicode():
    items = [_item(id=i, title=f"Café {i}") for i in (3, 1, 2)]
    payload = serialize(build_rows(items, ["Title"]), ["Title"])
    assert payload.decode("utf-8").split("\r\n")[1:4] == ["Café 3", "Café 1", "Café 2"]


def test_export_filename_uses_iso_date():
    assert export_filename(date(2024, 5, 20)) == "canva_bulk_create_2024-05-20.csv"


def test_column_layout_mutations():
    layout = ColumnLayout()
    assert layout.columns == ["Title", "Image", "URL"]
    assert layout.add() == "Column_4"
    layout.rename(3, "Image_Status")
    assert layout.columns == ["Title", "Image", "URL", "Image_Status"]
    assert layout.remove(0) == "Title"
    assert layout.columns == ["Image", "URL", "Image_Status"]
    with pytest.raises(IndexError):
        layout.rename(5, "nope")


def test_column_layout_keeps_one_column():
    layout = ColumnLayout(["Title"])
    with pytest.raises(ValueError):
        layout.remove(0)
    assert layout.columns == ["Title"]


def test_column_layout_returns_copy():
    layout = ColumnLayout(["Title", "URL"])
    layout.columns.append("Injected")
    assert len(layout) == 2


def test_file_exporter_writes_payload(tmp_path):
    exporter = FileExporter(tmp_path / "out")
    path = exporter.save(b"Title\r\nHello\r\n", "canva_bulk_create_2024-05-20.csv")
    exporter.close()
    assert path == str(tmp_path / "out" / "canva_bulk_create_2024-05-20.csv")
    assert (tmp_path / "out" / "canva_bulk_create_2024-05-20.csv").read_bytes() == b"Title\r\nHello\r\n"


def test_file_exporter_sanitises_filename(tmp_path):
    path = FileExporter(tmp_path).save(b"x", "../evil name.csv")
    assert path == str(tmp_path / ".._evil_name.csv")
