import pytest

from ellyn.meta import (
    META_BLOCKS,
    META_METHODS,
    Block,
    File,
    MetaData,
    Method,
    Package,
    Pos,
    VarDef,
    VarDefList,
    decode_var_def,
    encode_csv_rows,
    parse_pos,
)


@pytest.mark.parametrize(
    "defs",
    [
        [VarDef(["a", "b"], "string"), VarDef(["c"], "int")],
        [],
        None,
    ],
)
def test_var_def_list_round_trip(defs):
    def_list = VarDefList(defs)
    encoded = def_list.encode()
    assert decode_var_def(encoded).encode() == encoded


def test_var_def_list_encoding_and_indexes():
    def_list = VarDefList([VarDef(["a", "b"], "string"), VarDef(["c"], "int")])
    assert def_list.encode() == "{a:b}string;{c}int"
    assert len(def_list) == 3
    assert def_list.name_of(1) == "b"
    assert def_list.type_of(1) == "string"
    assert def_list.type_of(2) == "int"
    assert decode_var_def(def_list.encode()) == def_list


def test_empty_var_def_list():
    assert VarDefList(None).encode() == ""
    assert len(decode_var_def("")) == 0


def test_decode_var_def_invalid():
    with pytest.raises(ValueError):
        decode_var_def("nobrace")


def test_pos_round_trip():
    pos = Pos(offset=10, line=3, column=5)
    assert str(pos) == "L3C5:10"
    assert parse_pos(str(pos)) == pos


@pytest.mark.parametrize("text", ["L3C5", "3C5:10", "LxC5:10", "L-1C5:10"])
def test_parse_pos_invalid(text):
    with pytest.raises(ValueError):
        parse_pos(text)


def test_package_from_path():
    pkg = Package.from_path("/src/demo", "example.com/demo/demo")
    assert pkg.name == "demo"
    assert pkg.dir == "/src/demo"
    pkg.id = 3
    assert pkg.encode_row() == "3,demo,example.com/demo/demo"
    parsed = Package.parse(pkg.encode_row().split(","))
    assert (parsed.id, parsed.name, parsed.path) == (3, "demo", "example.com/demo/demo")


def test_file_round_trip():
    f = File(file_id=2, package_id=1, relative_path="/main.go", line_num=40)
    assert File.parse(f.encode_row().split(",")) == f


def _sample():
    method = Method(
        id=0,
        full_name="main",
        file_id=0,
        package_id=0,
        begin=Pos(1, 2, 1),
        end=Pos(30, 5, 2),
        args_list=VarDefList([VarDef(["a"], "int")]),
        return_list=VarDefList(),
    )
    block = Block(id=0, file_id=0, method_id=0, method_offset=0, begin=Pos(12, 2, 13), end=Pos(29, 5, 1))
    method.blocks = [block]
    packages = [Package(id=0, name="demo", path="example/demo")]
    files = [File(file_id=0, package_id=0, relative_path="/main.go", line_num=20)]
    return packages, files, [method], [block]


def test_meta_data_decode_round_trip():
    packages, files, methods, blocks = _sample()
    meta = MetaData.decode(
        encode_csv_rows(packages),
        encode_csv_rows(files),
        encode_csv_rows(methods),
        encode_csv_rows(blocks),
    )
    assert meta.packages == packages
    assert meta.files == files
    assert meta.blocks == blocks
    decoded = meta.methods[0]
    assert decoded.block_cnt == 1
    assert decoded.blocks[0] == blocks[0]
    assert decoded.args_list == methods[0].args_list
    assert decoded.begin == methods[0].begin
    assert meta.block_flags(0) == [False]


def test_meta_data_load(tmp_path):
    _, _, methods, blocks = _sample()
    (tmp_path / META_METHODS).write_bytes(encode_csv_rows(methods))
    (tmp_path / META_BLOCKS).write_bytes(encode_csv_rows(blocks))
    meta = MetaData.load(tmp_path)
    assert meta.packages == []
    assert meta.files == []
    assert [m.full_name for m in meta.methods] == ["main"]
    assert meta.methods[0].blocks[0] is meta.blocks[0]


def test_meta_data_load_empty_dir(tmp_path):
    meta = MetaData.load(tmp_path)
    assert (meta.packages, meta.files, meta.methods, meta.blocks) == ([], [], [], [])