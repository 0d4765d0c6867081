import os
import shutil
import tempfile

import pytest

from protoc_wire.main import main, run


class TestCommandLine:
    def setup_method(self):
        self.tmpdir = tempfile.mkdtemp()
        self.proto_dir = os.path.join(self.tmpdir, "protos")
        self.out_dir = os.path.join(self.tmpdir, "out")
        os.makedirs(self.proto_dir)
        self._write("order.proto", "package order;\nmessage OrderInfo { optional int32 order_id = 1; }\n")
        self._write("item.proto", "package order;\nmessage OrderItem { optional string name = 1; }\n")

    def teardown_method(self):
        shutil.rmtree(self.tmpdir)

    def _write(self, name: str, content: str) -> str:
        path = os.path.join(self.proto_dir, name)
        with open(path, "w") as f:
            f.write(content)
        return path

    def test_positional_sources(self, capsys):
        main(["--proto-path", self.proto_dir, "--java-out", self.out_dir, "order.proto"])

        assert os.path.exists(os.path.join(self.out_dir, "order", "OrderInfo.java"))
        assert "Generated 1 file(s)" in capsys.readouterr().out

    def test_files_list(self):
        list_path = os.path.join(self.tmpdir, "files.txt")
        with open(list_path, "w") as f:
            f.write("order.proto\n\n  item.proto  \n")

        main(["--proto-path", self.proto_dir, "--java-out", self.out_dir, "--files", list_path])

        assert os.path.exists(os.path.join(self.out_dir, "order", "OrderInfo.java"))
        assert os.path.exists(os.path.join(self.out_dir, "order", "OrderItem.java"))

    def test_roots_flag(self):
        main([
            "--proto-path", self.proto_dir,
            "--java-out", self.out_dir,
            "--roots", "order.OrderItem",
            "order.proto", "item.proto",
        ])

        assert not os.path.exists(os.path.join(self.out_dir, "order", "OrderInfo.java"))
        assert os.path.exists(os.path.join(self.out_dir, "order", "OrderItem.java"))

    def test_registry_class_flag(self):
        main([
            "--proto-path", self.proto_dir,
            "--java-out", self.out_dir,
            "--registry-class", "com.example.Registry",
            "order.proto",
        ])
        assert os.path.exists(os.path.join(self.out_dir, "com", "example", "Registry.java"))

    def test_missing_java_out_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--proto-path", self.proto_dir, "order.proto"])
        assert exc.value.code != 0
        assert "--java-out" in capsys.readouterr().err

    def test_proto_path_defaults_to_cwd(self, capsys, monkeypatch):
        monkeypatch.chdir(self.proto_dir)
        main(["--java-out", self.out_dir, "order.proto"])

        assert "--proto-path flag not specified" in capsys.readouterr().err
        assert os.path.exists(os.path.join(self.out_dir, "order", "OrderInfo.java"))


class TestFatalErrors:
    def setup_method(self):
        self.tmpdir = tempfile.mkdtemp()

    def teardown_method(self):
        shutil.rmtree(self.tmpdir)

    def _run(self, content: str):
        with open(os.path.join(self.tmpdir, "bad.proto"), "w") as f:
            f.write(content)
        run(self.tmpdir, ["bad.proto"], [], os.path.join(self.tmpdir, "out"))

    def test_parse_error_exits(self, capsys):
        with pytest.raises(SystemExit) as exc:
            self._run("message Broken {")
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("FATAL: ")

    def test_unresolved_type_exits(self, capsys):
        with pytest.raises(SystemExit) as exc:
            self._run("package p;\nmessage M { optional Missing m = 1; }\n")
        assert exc.value.code == 1
        assert "FATAL: Unknown type Missing in message M" in capsys.readouterr().err

    def test_missing_file_exits(self, capsys):
        with pytest.raises(SystemExit) as exc:
            run(self.tmpdir, ["nope.proto"], [], os.path.join(self.tmpdir, "out"))
        assert exc.value.code == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_undecodable_file_exits(self, capsys):
        with open(os.path.join(self.tmpdir, "latin.proto"), "wb") as f:
            f.write(b"package p;\n// caf\xe9\nmessage M {}\n")
        with pytest.raises(SystemExit) as exc:
            run(self.tmpdir, ["latin.proto"], [], os.path.join(self.tmpdir, "out"))
        assert exc.value.code == 1
        assert "FATAL: Cannot decode" in capsys.readouterr().err
