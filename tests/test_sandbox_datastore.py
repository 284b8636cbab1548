import json
import tempfile
import unittest
from pathlib import Path

from sandbox_cli.exceptions import CorruptLocalStateError
from sandbox_cli.models.sandbox_models import SandboxRecord
from sandbox_cli.services.sandbox_datastore import SandboxDatastore


def _record(sandbox_id, current=False, name=None):
    name = name or sandbox_id.upper()
    return SandboxRecord(sandbox_id=sandbox_id, folder=name, current=current, name=name, jwt=f"jwt-{sandbox_id}")


class TestSandboxDatastore(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.datafile = Path(self.tmpdir.name) / ".datastore"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_starts_empty_and_is_not_created(self):
        store = SandboxDatastore(self.datafile)

        self.assertEqual(store.get_all_records(), [])
        self.assertIsNone(store.get_current())
        self.assertFalse(self.datafile.exists())

    def test_save_current_into_empty_store(self):
        store = SandboxDatastore(self.datafile)
        store.save(SandboxRecord("sb1", "Foo", True, "Foo", "tok"))

        self.assertEqual(store.get_current().sandbox_id, "sb1")

    def test_saving_current_record_clears_previous_current(self):
        store = SandboxDatastore(self.datafile)
        store.save(_record("sb1", current=True))
        store.save(_record("sb2", current=True))

        self.assertFalse(store.get_record("sb1").current)
        self.assertEqual(store.get_current().sandbox_id, "sb2")

        reloaded = SandboxDatastore(self.datafile)
        self.assertFalse(reloaded.get_record("sb1").current)
        self.assertTrue(reloaded.get_record("sb2").current)

    def test_saving_non_current_record_keeps_current(self):
        store = SandboxDatastore(self.datafile)
        store.save(_record("sb1", current=True))
        store.save(_record("sb2", current=False))

        self.assertEqual(store.get_current().sandbox_id, "sb1")

    def test_save_replaces_existing_record(self):
        store = SandboxDatastore(self.datafile)
        store.save(_record("sb1", current=True))
        replacement = _record("sb1", current=True)
        replacement.jwt = "new-token"
        store.save(replacement)

        self.assertEqual(len(store.get_all_records()), 1)
        self.assertEqual(SandboxDatastore(self.datafile).get_record("sb1").jwt, "new-token")

    def test_make_current_is_exclusive_and_persisted(self):
        store = SandboxDatastore(self.datafile)
        for sandbox_id in ("sb1", "sb2", "sb3"):
            store.save(_record(sandbox_id, current=True))

        store.make_current("sb1")

        currents = [r.sandbox_id for r in SandboxDatastore(self.datafile).get_all_records() if r.current]
        self.assertEqual(currents, ["sb1"])

    def test_make_current_unknown_id_raises_key_error(self):
        store = SandboxDatastore(self.datafile)
        store.save(_record("sb1", current=True))

        with self.assertRaises(KeyError):
            store.make_current("nope")
        self.assertEqual(store.get_current().sandbox_id, "sb1")

    def test_round_trip_preserves_records(self):
        store = SandboxDatastore(self.datafile)
        records = [_record("sb1"), _record("sb2", current=True), _record("sb3")]
        for rec in records:
            store.save(rec)

        reloaded = SandboxDatastore(self.datafile)

        self.assertEqual(
            sorted(reloaded.get_all_records(), key=lambda r: r.sandbox_id),
            sorted(store.get_all_records(), key=lambda r: r.sandbox_id),
        )

    def test_round_trip_of_empty_store(self):
        store = SandboxDatastore(self.datafile)
        store.save(_record("sb1"))
        store.delete_record("sb1")

        reloaded = SandboxDatastore(self.datafile)

        self.assertEqual(reloaded.get_all_records(), [])
        self.assertEqual(json.loads(self.datafile.read_text()), {})

    def test_delete_record_is_idempotent(self):
        store = SandboxDatastore(self.datafile)
        store.save(_record("sb1", current=True))

        store.delete_record("sb1")
        store.delete_record("sb1")

        self.assertFalse(store.has_record("sb1"))
        self.assertIsNone(store.get_current())
        self.assertIsNone(store.get_record("sb1"))

    def test_file_uses_camel_case_keys_and_two_space_indent(self):
        store = SandboxDatastore(self.datafile)
        store.save(SandboxRecord("sb1", "Foo", True, "Foo", "tok"))

        content = self.datafile.read_text(encoding="utf-8")
        expected = {"sb1": {"sandboxId": "sb1", "folder": "Foo", "current": True, "name": "Foo", "jwt": "tok"}}
        self.assertEqual(json.loads(content), expected)
        self.assertEqual(content, json.dumps(expected, indent=2))

    def test_missing_sandbox_id_defaults_to_key(self):
        self.datafile.write_text(json.dumps({"sb9": {"folder": "x", "current": False, "name": "x", "jwt": "t"}}))

        store = SandboxDatastore(self.datafile)

        self.assertEqual(store.get_record("sb9").sandbox_id, "sb9")

    def test_corrupt_file_raises_error_naming_file(self):
        self.datafile.write_text("{not json")

        with self.assertRaises(CorruptLocalStateError) as ctx:
            SandboxDatastore(self.datafile)

        self.assertIn(str(self.datafile), str(ctx.exception))
        self.assertIsInstance(ctx.exception, ValueError)

    def test_undecodable_file_is_corrupt(self):
        self.datafile.write_bytes(b'{"sb1": {"name": "\xff\xfe"}}')

        with self.assertRaises(CorruptLocalStateError) as ctx:
            SandboxDatastore(self.datafile)

        self.assertIn(str(self.datafile), str(ctx.exception))

    def test_non_object_top_level_is_corrupt(self):
        self.datafile.write_text("[1, 2, 3]")

        with self.assertRaises(CorruptLocalStateError):
            SandboxDatastore(self.datafile)

    def test_non_object_entry_is_corrupt(self):
        self.datafile.write_text(json.dumps({"sb1": "oops"}))

        with self.assertRaises(CorruptLocalStateError):
            SandboxDatastore(self.datafile)


if __name__ == "__main__":
    unittest.main()
