"""
Tests del pipeline completo sobre SQLite en memoria.

Cubren el ciclo guardar -> leer, la idempotencia, la limpieza al reducir
filas, el ruteo por tipo de objeto y el comportamiento ante fallos.
"""
import pytest
from sqlalchemy import select

from repeater_batch.application.services.field_hooks import FieldTransformChain, WriteFilterChain, WriteObserverChain
from repeater_batch.application.use_cases.field_update_use_cases import FieldUpdatePipeline
from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.infrastructure.cache.memory_cache import InMemoryObjectCache
from repeater_batch.infrastructure.database.destinations import DestinationRegistry, POST_META
from repeater_batch.infrastructure.database.models import OptionModel, PostMetaModel, UserMetaModel
from repeater_batch.infrastructure.repositories.meta_repository import MetaRepository
from repeater_batch.shared.constants.field_constants import ObjectKind, WriteOperation
from repeater_batch.shared.exceptions.domain import InvalidObjectIdException


def rows(titles):
    return [{"field_title": t} for t in titles]


def stored(session_factory, key_column):
    with session_factory() as session:
        return set(session.execute(select(key_column)).scalars().all())


def fresh(session_factory) -> FieldUpdatePipeline:
    """Pipeline con cache vacia: las lecturas van al almacen."""
    return FieldUpdatePipeline(session_factory, InMemoryObjectCache())


class TestRoundTrip:
    """Tests para guardar y volver a leer."""

    def test_update_then_load(self, pipeline, session_factory, items_schema) -> None:
        """Lo guardado se lee igual, desde cache y desde el almacen."""
        result = pipeline.update(rows(["A", "B"]), 42, items_schema)

        assert result.success is True
        assert result.inserted == 6
        assert pipeline.load(42, items_schema) == rows(["A", "B"])
        assert fresh(session_factory).load(42, items_schema) == rows(["A", "B"])

    def test_nested_round_trip(self, pipeline, session_factory, nested_schema) -> None:
        """Un repetidor anidado se reconstruye completo."""
        value = [
            {"field_heading": "H1", "field_links": [{"field_label": "a", "field_url": "/a"}]},
            {"field_heading": "H2", "field_links": []},
        ]

        assert pipeline.update(value, 42, nested_schema).success is True
        assert fresh(session_factory).load(42, nested_schema) == value

    def test_scalar_field(self, pipeline, session_factory) -> None:
        """Un campo simple guarda valor + revision."""
        schema = FieldSchema(name="subtitle", key="field_subtitle")

        result = pipeline.update("Hola", 42, schema)

        assert result.inserted == 2
        assert fresh(session_factory).load(42, schema) == "Hola"

    @pytest.mark.parametrize("value", [["x", "y"], {"a": 1}, '{"a": 1}', "[1, 2]"])
    def test_serialized_values_round_trip(self, pipeline, session_factory, value) -> None:
        """Listas, dicts y textos con forma de JSON vuelven tal cual."""
        schema = FieldSchema(name="data", key="field_data")

        pipeline.update(value, 42, schema)

        assert fresh(session_factory).load(42, schema) == value


class TestIdempotence:
    """Tests para escrituras repetidas."""

    def test_second_identical_update_writes_nothing(self, pipeline, items_schema) -> None:
        """El mismo valor dos veces: la segunda no inserta ni actualiza."""
        pipeline.update(rows(["A", "B"]), 42, items_schema)

        result = pipeline.update(rows(["A", "B"]), 42, items_schema)

        assert result.success is True
        assert (result.inserted, result.updated, result.deleted) == (0, 0, 0)
        assert result.unchanged == 6
        assert result.written == 0

    def test_noop_keeps_composite_cache(self, pipeline, cache, items_schema) -> None:
        """Sin cambios no se invalida la vista compuesta."""
        pipeline.update(rows(["A"]), 42, items_schema)
        pipeline.load_object_meta(42)

        pipeline.update(rows(["A"]), 42, items_schema)

        assert cache.get("post_meta", "42")[0] is True

    def test_changed_value_is_updated(self, pipeline, session_factory, items_schema) -> None:
        """Un valor distinto actualiza solo su clave."""
        pipeline.update(rows(["A", "B"]), 42, items_schema)

        result = pipeline.update(rows(["A", "C"]), 42, items_schema)

        assert (result.inserted, result.updated) == (0, 1)
        assert fresh(session_factory).load(42, items_schema) == rows(["A", "C"])


class TestShrink:
    """Tests para la limpieza de filas sobrantes."""

    def test_five_to_two_deletes_tail(self, pipeline, session_factory, items_schema) -> None:
        """5 filas -> 2 filas: se borran las filas 2 a 4 y quedan 0 y 1."""
        pipeline.update(rows("ABCDE"), 42, items_schema)

        result = pipeline.update(rows("AB"), 42, items_schema)

        assert result.deleted == 6
        assert result.updated == 1
        assert stored(session_factory, PostMetaModel.meta_key) == {
            "items", "_items",
            "items_0_title", "_items_0_title",
            "items_1_title", "_items_1_title",
        }

    def test_empty_value_clears_rows(self, pipeline, session_factory, items_schema) -> None:
        """Un valor vacio deja el repetidor en 0 filas."""
        pipeline.update(rows("AB"), 42, items_schema)

        result = pipeline.update([], 42, items_schema)

        assert result.deleted == 4
        assert fresh(session_factory).load(42, items_schema) == []

    def test_deleted_keys_leave_cache(self, pipeline, cache, items_schema) -> None:
        """Las claves borradas no se siguen leyendo desde la cache."""
        pipeline.update(rows("AB"), 42, items_schema)
        pipeline.update(rows("A"), 42, items_schema)

        assert pipeline.load(42, items_schema) == rows("A")
        assert cache.get("acf", "load_value/post_id=42/name=items_1_title") == (False, None)

    def test_shrink_does_not_touch_other_objects(self, pipeline, session_factory, items_schema) -> None:
        """Reducir el objeto 42 no borra filas del objeto 43."""
        pipeline.update(rows("AB"), 42, items_schema)
        pipeline.update(rows("AB"), 43, items_schema)

        pipeline.update([], 42, items_schema)

        assert fresh(session_factory).load(43, items_schema) == rows("AB")


class TestRouting:
    """Tests para el ruteo por tipo de objeto."""

    def test_user_id_goes_to_usermeta(self, pipeline, session_factory, items_schema) -> None:
        """'user_7' escribe en usermeta y no en postmeta."""
        assert pipeline.update(rows("A"), "user_7", items_schema).success is True

        with session_factory() as session:
            owners = set(session.execute(select(UserMetaModel.user_id)).scalars().all())
            posts = session.execute(select(PostMetaModel)).all()

        assert owners == {7}
        assert posts == []

    def test_option_bucket_goes_to_options(self, pipeline, session_factory, items_schema) -> None:
        """Un texto cualquiera escribe en options con el bucket en la clave."""
        pipeline.update(rows("A"), "site_theme", items_schema)

        assert stored(session_factory, OptionModel.option_name) == {
            "site_theme_items", "_site_theme_items",
            "site_theme_items_0_title", "_site_theme_items_0_title",
        }
        assert fresh(session_factory).load("site_theme", items_schema) == rows("A")

    def test_numeric_string_is_post(self, pipeline, session_factory, items_schema) -> None:
        """'42' y 42 son el mismo objeto."""
        pipeline.update(rows("A"), "42", items_schema)

        assert pipeline.update(rows("A"), 42, items_schema).written == 0

    @pytest.mark.parametrize("object_id", [0, -3, "0", "", None, "user_", "user_abc"])
    def test_invalid_object_id(self, pipeline, session_factory, items_schema, object_id) -> None:
        """Un ID invalido falla sin escribir nada."""
        result = pipeline.update(rows("A"), object_id, items_schema)

        assert result.success is False
        assert result.error_code == "INVALID_OBJECT_ID"
        for model in (PostMetaModel, UserMetaModel, OptionModel):
            with session_factory() as session:
                assert session.execute(select(model)).all() == []

    def test_unknown_destination(self, session_factory, cache, items_schema) -> None:
        """Un tipo de objeto sin tabla registrada falla antes de escribir."""
        pipeline = FieldUpdatePipeline(
            session_factory,
            cache,
            destinations=DestinationRegistry({ObjectKind.POST: POST_META}),
        )

        result = pipeline.update(rows("A"), "user_7", items_schema)

        assert result.success is False
        assert result.error_code == "UNKNOWN_DESTINATION"
        assert result.details == {"object_kind": "user"}

    def test_load_with_invalid_id_raises(self, pipeline, items_schema) -> None:
        """load() propaga el error de ID."""
        with pytest.raises(InvalidObjectIdException):
            pipeline.load(0, items_schema)


class TestFailures:
    """Tests para rollback y coherencia de cache ante fallos."""

    def test_failed_write_rolls_back_everything(
        self, pipeline, session_factory, cache, items_schema, monkeypatch
    ) -> None:
        """Si el UPDATE falla, tampoco queda el INSERT del mismo lote."""
        pipeline.update(rows("A"), 42, items_schema)
        pipeline.load_object_meta(42)
        monkeypatch.setattr(MetaRepository, "update_batch", lambda self, ref, rows: 0)

        result = pipeline.update(rows("BC"), 42, items_schema)

        assert result.success is False
        assert result.error_code == "STALE_READ_RACE"
        assert result.retryable is True
        assert fresh(session_factory).load(42, items_schema) == rows("A")
        # Solo invalidada: sin vista compuesta y sin repoblar
        assert cache.get("post_meta", "42") == (False, None)
        assert cache.get("acf", "load_value/post_id=42/name=items_1_title") == (False, None)

    def test_invalid_value_fails_without_writes(self, pipeline, session_factory, items_schema) -> None:
        """Un valor con forma invalida en el nivel superior no escribe nada."""
        result = pipeline.update("no-es-lista", 42, items_schema)

        assert result.success is False
        assert result.error_code == "INVALID_FIELD_VALUE"
        assert stored(session_factory, PostMetaModel.meta_key) == set()

    def test_nested_failure_is_isolated(self, pipeline, nested_schema) -> None:
        """Un sub-arbol invalido se omite y el resto se guarda."""
        value = [
            {"field_heading": "H1", "field_links": "no-es-lista"},
            {"field_heading": "H2", "field_links": [{"field_label": "a", "field_url": "/a"}]},
        ]

        result = pipeline.update(value, 42, nested_schema)

        assert result.success is True
        assert len(result.skipped_subtrees) == 1
        assert result.skipped_subtrees[0].startswith("sections_0_links")


class TestHooks:
    """Tests para transformaciones y vetos en el pipeline."""

    def test_vetoed_key_is_reported_and_not_cached(self, session_factory, cache, items_schema) -> None:
        """Una clave vetada no se escribe ni se guarda en cache."""
        filters = WriteFilterChain([lambda ref, key, value, op: True if key == "items_0_title" else None])
        pipeline = FieldUpdatePipeline(session_factory, cache, write_filters=filters)

        result = pipeline.update(rows("A"), 42, items_schema)

        assert result.success is True
        assert result.inserted == 3
        assert result.vetoed == ["items_0_title"]
        assert cache.get("acf", "load_value/post_id=42/name=items_0_title") == (False, None)
        assert "items_0_title" not in stored(session_factory, PostMetaModel.meta_key)

    def test_transform_is_persisted(self, session_factory, cache, items_schema) -> None:
        """El valor transformado es el que se guarda."""
        transforms = FieldTransformChain()
        transforms.add("name", "title", lambda value, ref, field: value.strip().upper())
        pipeline = FieldUpdatePipeline(session_factory, cache, transforms=transforms)

        pipeline.update(rows([" a "]), 42, items_schema)

        assert fresh(session_factory).load(42, items_schema) == rows(["A"])


class TestObjectMeta:
    """Tests para la vista compuesta."""

    def test_composite_view_refreshes_after_write(self, pipeline, items_schema) -> None:
        """La vista compuesta se recalcula despues de una escritura."""
        pipeline.update(rows("A"), 42, items_schema)
        assert pipeline.load_object_meta(42)["items_0_title"] == "A"

        pipeline.update(rows("B"), 42, items_schema)

        meta = pipeline.load_object_meta(42)
        assert meta["items_0_title"] == "B"
        assert meta["_items"] == "field_items"


class TestHookFailures:
    """Tests para errores dentro de transformaciones y observadores."""

    def test_failing_transform_returns_failure(self, session_factory, cache, items_schema) -> None:
        """Una transformacion que lanza se reporta en el resultado, sin escribir."""
        def broken(value, ref, field):
            raise ValueError("bad")

        transforms = FieldTransformChain()
        transforms.add("name", "title", broken)
        pipeline = FieldUpdatePipeline(session_factory, cache, transforms=transforms)

        result = pipeline.update(rows("A"), 42, items_schema)

        assert result.success is False
        assert result.error_code == "INVALID_FIELD_VALUE"
        assert "bad" in result.message
        assert stored(session_factory, PostMetaModel.meta_key) == set()

    def test_failing_observer_rolls_back(self, session_factory, cache, items_schema) -> None:
        """Un error inesperado durante la escritura se reporta y deshace el lote."""
        def broken(ref, operation, keys, affected):
            raise RuntimeError("observador roto")

        pipeline = FieldUpdatePipeline(session_factory, cache, write_observers=WriteObserverChain([broken]))

        result = pipeline.update(rows("A"), 42, items_schema)

        assert result.success is False
        assert result.error_code == "INTERNAL_ERROR"
        assert stored(session_factory, PostMetaModel.meta_key) == set()

    def test_observer_sees_committed_keys(self, session_factory, cache, items_schema) -> None:
        """Los observadores reciben cada operacion aplicada."""
        seen = []
        observers = WriteObserverChain([lambda ref, op, keys, affected: seen.append((op, affected))])
        pipeline = FieldUpdatePipeline(session_factory, cache, write_observers=observers)

        pipeline.update(rows("AB"), 42, items_schema)
        pipeline.update(rows("A"), 42, items_schema)

        assert seen == [
            (WriteOperation.ADD, 6),
            (WriteOperation.UPDATE, 1),
            (WriteOperation.DELETE, 2),
        ]


class TestOptionKeys:
    """Tests para claves de opciones con nombres que empiezan con "_"."""

    def test_underscore_field_does_not_clobber_revision(self, pipeline, session_factory) -> None:
        """El campo "_x" no pisa la revision del campo "x" en el mismo bucket."""
        plain = FieldSchema(name="x", key="field_x")
        hidden = FieldSchema(name="_x", key="field_ux")

        pipeline.update("hello", "opts", plain)
        pipeline.update("secret", "opts", hidden)

        assert stored(session_factory, OptionModel.option_name) == {
            "opts_x", "_opts_x", "opts__x", "_opts__x",
        }
        reader = fresh(session_factory)
        assert reader.load("opts", plain) == "hello"
        assert reader.load("opts", hidden) == "secret"
        assert reader.load_object_meta("opts")["_opts_x"] == "field_x"

    def test_option_shrink_deletes_bucket_keys(self, pipeline, session_factory, items_schema) -> None:
        """Reducir un repetidor en opciones borra las claves con el bucket."""
        pipeline.update(rows("AB"), "opts", items_schema)

        result = pipeline.update(rows("A"), "opts", items_schema)

        assert result.deleted == 2
        assert stored(session_factory, OptionModel.option_name) == {
            "opts_items", "_opts_items", "opts_items_0_title", "_opts_items_0_title",
        }
