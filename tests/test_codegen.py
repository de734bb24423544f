"""
Tests for the record, repository, service and controller emitters.
"""

import ast
import dataclasses
import importlib
import sys

import pytest

from entity_auto_generator.ast_codegen import (
    CodeGenerator,
    CodeGeneratorFactory,
    EMISSION_ORDER,
    generate_controller_code,
    generate_record_code,
    generate_repository_code,
    generate_service_code,
)
from entity_auto_generator.ast_codegen.base import module_name, pluralize, safe_identifier
from entity_auto_generator.ast_codegen.code_generator import CodeGeneratorStrategy
from entity_auto_generator.ast_codegen.controllers import resource_path
from entity_auto_generator.domain import EntityModelBuilder
from entity_auto_generator.exceptions import CodeGenerationError

from conftest import col, pk

PACKAGE = "shopgen"


@pytest.fixture
def shop_metadata(shop_reader):
    builder = EntityModelBuilder(shop_reader)
    return {table: builder.build(table) for table in shop_reader.list_tables()}


def parse(code):
    return ast.parse(code)


def get_class(module, name):
    return next(node for node in module.body if isinstance(node, ast.ClassDef) and node.name == name)


def imported_names(module, from_module):
    names = []
    for node in ast.walk(module):
        if isinstance(node, ast.ImportFrom) and node.module == from_module:
            names.extend(alias.name for alias in node.names)
    return names


def annotated_fields(class_def):
    return {
        node.target.id: ast.unparse(node.annotation)
        for node in class_def.body
        if isinstance(node, ast.AnnAssign)
    }


# --- Helpers ---

class TestNamingHelpers:

    def test_safe_identifier(self):
        assert safe_identifier("class") == "class_"
        assert safe_identifier("1st_place") == "_1st_place"
        assert safe_identifier("match") == "match"
        assert safe_identifier("user") == "user"

    def test_module_name(self):
        assert module_name("OrderItem") == "order_item"
        assert module_name("order") == "order"
        assert module_name("import") == "import_"

    def test_pluralize(self):
        assert pluralize("user") == "users"
        assert pluralize("person") == "people"
        assert pluralize("") == ""


# --- Records ---

class TestRecordEmitter:

    def test_record_class(self, shop_metadata):
        module = parse(generate_record_code(shop_metadata["order"], PACKAGE))

        record = get_class(module, "Order")
        assert ast.unparse(record.decorator_list[0]) == "dataclasses.dataclass"
        assert annotated_fields(record) == {
            "__tablename__": "ClassVar[str]",
            "__columns__": "ClassVar[Dict[str, str]]",
            "id": "Optional[int]",
            "user": "Optional[User]",
            "total": "Optional[Decimal]",
            "placedAt": "Optional[datetime]",
        }

    def test_record_imports(self, shop_metadata):
        module = parse(generate_record_code(shop_metadata["order"], PACKAGE))

        assert imported_names(module, "__future__") == ["annotations"]
        assert imported_names(module, "decimal") == ["Decimal"]
        assert imported_names(module, "datetime") == ["datetime"]
        assert "TYPE_CHECKING" in imported_names(module, "typing")

        guard = next(node for node in module.body if isinstance(node, ast.If))
        assert ast.unparse(guard.test) == "TYPE_CHECKING"
        assert ast.unparse(guard.body[0]) == f"from {PACKAGE}.entities.user import User"

    def test_column_map_and_table_name(self, shop_metadata):
        record = get_class(parse(generate_record_code(shop_metadata["order"], PACKAGE)), "Order")

        values = {
            node.target.id: ast.literal_eval(node.value)
            for node in record.body
            if isinstance(node, ast.AnnAssign) and node.target.id.startswith("__")
        }
        assert values["__tablename__"] == "order"
        assert values["__columns__"] == {
            "id": "id", "user": "user_id", "total": "total", "placedAt": "placed_at",
        }

    def test_collections_default_to_empty_lists(self, shop_metadata):
        record = get_class(parse(generate_record_code(shop_metadata["user"], PACKAGE)), "User")

        fields = {node.target.id: node for node in record.body if isinstance(node, ast.AnnAssign)}
        assert ast.unparse(fields["orders"].annotation) == "List[Order]"
        assert ast.unparse(fields["orders"].value) == "dataclasses.field(default_factory=list)"
        assert ast.unparse(fields["profile"].annotation) == "Optional[Profile]"
        assert ast.unparse(fields["profile"].value) == "None"

    def test_unmapped_type_is_any(self, make_reader):
        metadata = EntityModelBuilder(make_reader({"product": [pk(), col("attrs", "hstore")]})).build("product")

        module = parse(generate_record_code(metadata, PACKAGE))

        assert "Any" in imported_names(module, "typing")
        assert annotated_fields(get_class(module, "Product"))["attrs"] == "Optional[Any]"
        assert not any(isinstance(node, ast.If) for node in module.body)

    def test_shared_primary_key_record(self, make_reader):
        reader = make_reader({"user": [pk()], "user_settings": [pk("user_id", references="user"), col("theme")]})
        metadata = EntityModelBuilder(reader).build("user_settings")

        module = parse(generate_record_code(metadata, PACKAGE))
        record = get_class(module, "UserSettings")

        assert annotated_fields(record)["user"] == "Optional[User]"
        columns = next(
            node.value for node in record.body
            if isinstance(node, ast.AnnAssign) and node.target.id == "__columns__"
        )
        assert ast.literal_eval(columns) == {"id": "user_id", "user": "user_id", "theme": "theme"}
        assert "User" in imported_names(module, f"{PACKAGE}.entities.user")

    def test_keyword_column_names(self, make_reader):
        metadata = EntityModelBuilder(make_reader({"lesson": [pk(), col("class")]})).build("lesson")

        record = get_class(parse(generate_record_code(metadata, PACKAGE)), "Lesson")

        assert "class_" in annotated_fields(record)

    def test_deterministic(self, shop_metadata):
        assert generate_record_code(shop_metadata["user"], PACKAGE) == generate_record_code(shop_metadata["user"], PACKAGE)


# --- Repositories, services, controllers ---

class TestLayerEmitters:

    def test_repository(self, shop_metadata):
        module = parse(generate_repository_code(shop_metadata["user"], PACKAGE))

        repository = get_class(module, "UserRepository")
        assert ast.unparse(repository.bases[0]) == "CrudRepository[User, int]"
        assert imported_names(module, f"{PACKAGE}.entities.user") == ["User"]
        assert imported_names(module, f"{PACKAGE}.repository_base") == ["CrudRepository"]

    def test_repository_identifier_import(self, make_reader):
        metadata = EntityModelBuilder(make_reader({"ledger": [pk("code", "numeric")]})).build("ledger")

        module = parse(generate_repository_code(metadata, PACKAGE))

        assert imported_names(module, "decimal") == ["Decimal"]
        assert ast.unparse(get_class(module, "LedgerRepository").bases[0]) == "CrudRepository[Ledger, Decimal]"

    def test_service(self, shop_metadata):
        module = parse(generate_service_code(shop_metadata["user"], PACKAGE))

        service = get_class(module, "UserService")
        methods = [node.name for node in service.body if isinstance(node, ast.FunctionDef)]
        assert methods == ["__init__", "find_all", "find_by_id", "save", "update", "partial_update", "delete_by_id"]
        assert imported_names(module, f"{PACKAGE}.exceptions") == ["ResourceNotFoundError"]
        assert imported_names(module, f"{PACKAGE}.repositories.user_repository") == ["UserRepository"]

        updatable = next(
            node for node in service.body
            if isinstance(node, ast.Assign) and node.targets[0].id == "updatable_fields"
        )
        assert ast.literal_eval(updatable.value) == ("name", "email", "orders", "profile")

    def test_controller(self, shop_metadata):
        module = parse(generate_controller_code(shop_metadata["order"], PACKAGE))

        controller = get_class(module, "OrderController")
        assigns = {
            node.targets[0].id: ast.literal_eval(node.value)
            for node in controller.body
            if isinstance(node, ast.Assign)
        }
        assert assigns["prefix"] == "/orders"
        assert assigns["routes"] == (
            ("GET", "", "get_all", 200),
            ("GET", "/{id}", "get_by_id", 200),
            ("POST", "", "create", 201),
            ("PUT", "/{id}", "replace", 204),
            ("PATCH", "/{id}", "patch", 204),
            ("DELETE", "/{id}", "delete", 204),
        )
        assert imported_names(module, f"{PACKAGE}.services.order_service") == ["OrderService"]

    def test_resource_path(self, make_reader):
        reader = make_reader({"order_item": [pk()], "person": [pk()]})
        builder = EntityModelBuilder(reader)

        assert resource_path(builder.build("order_item")) == "/order_items"
        assert resource_path(builder.build("person")) == "/people"


# --- Writing the package ---

class TestCodeGenerator:

    def test_factory(self):
        assert EMISSION_ORDER == ("record", "repository", "service", "controller")
        for name in EMISSION_ORDER:
            assert CodeGeneratorFactory.create(name) is not None
        with pytest.raises(ValueError):
            CodeGeneratorFactory.create("serializer")

    def test_custom_stage(self, tmp_path, shop_metadata, monkeypatch):
        class SchemaNoteGenerator(CodeGeneratorStrategy):
            package = "notes"
            module_suffix = "_note"

            def generate_code(self, metadata, package_name):
                return f'TABLE = "{metadata.table_name}"\n'

        monkeypatch.setattr(CodeGeneratorFactory, "_registry", dict(CodeGeneratorFactory._registry))
        CodeGeneratorFactory.register("note", SchemaNoteGenerator)
        generator = CodeGenerator(str(tmp_path), PACKAGE, format_code=False, stages=("record", "note"))

        paths = generator.generate_artifacts(shop_metadata["user"])

        assert paths[1] == tmp_path / PACKAGE / "notes" / "user_note.py"
        assert paths[1].read_text(encoding="utf-8") == 'TABLE = "user"\n'

    def test_artifacts_are_written_in_order(self, tmp_path, shop_metadata):
        generator = CodeGenerator(str(tmp_path), PACKAGE, format_code=False)

        paths = generator.generate_artifacts(shop_metadata["order"])

        root = tmp_path / PACKAGE
        assert paths == [
            root / "entities" / "order.py",
            root / "repositories" / "order_repository.py",
            root / "services" / "order_service.py",
            root / "controllers" / "order_controller.py",
        ]
        for path in paths:
            ast.parse(path.read_text(encoding="utf-8"))

    def test_shared_files(self, tmp_path):
        generator = CodeGenerator(str(tmp_path), PACKAGE, format_code=False)

        paths = generator.write_shared_files(["order", "user"], "shop")

        root = tmp_path / PACKAGE
        assert root / "__init__.py" in paths
        assert root / "exceptions.py" in paths
        assert root / "repository_base.py" in paths
        for sub_package in ("entities", "repositories", "services", "controllers"):
            assert (root / sub_package / "__init__.py").exists()

        namespace = {}
        exec((root / "__init__.py").read_text(encoding="utf-8"), namespace)
        assert namespace["TABLES"] == ("order", "user")

    def test_emission_errors_are_wrapped(self, tmp_path, shop_metadata):
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory", encoding="utf-8")
        generator = CodeGenerator(str(blocker), PACKAGE, format_code=False)

        with pytest.raises(CodeGenerationError) as excinfo:
            generator.generate_file("record", shop_metadata["user"])

        assert excinfo.value.context["component"] == "record"
        assert excinfo.value.context["table"] == "user"


# --- Generated code at runtime ---

@pytest.fixture
def shop_package(tmp_path, shop_metadata, monkeypatch):
    """Generate the shop package (black-formatted) and put it on sys.path."""
    generator = CodeGenerator(str(tmp_path), PACKAGE, format_code=True)
    generator.write_shared_files(sorted(shop_metadata), "public")
    for metadata in shop_metadata.values():
        generator.generate_artifacts(metadata)

    monkeypatch.syspath_prepend(str(tmp_path))
    yield PACKAGE
    for name in list(sys.modules):
        if name == PACKAGE or name.startswith(PACKAGE + "."):
            del sys.modules[name]


def test_generated_layers_work_together(shop_package):
    entities = importlib.import_module(f"{shop_package}.entities.user")
    repositories = importlib.import_module(f"{shop_package}.repositories.user_repository")
    services = importlib.import_module(f"{shop_package}.services.user_service")
    controllers = importlib.import_module(f"{shop_package}.controllers.user_controller")
    exceptions = importlib.import_module(f"{shop_package}.exceptions")

    User = entities.User
    controller = controllers.UserController(services.UserService(repositories.UserRepository()))

    created = controller.create(User(name="Ada", email="ada@example.com"))
    assert created.id == 1
    assert created.orders == []
    assert controller.get_by_id(1).name == "Ada"
    assert [u.email for u in controller.get_all()] == ["ada@example.com"]

    controller.patch(1, {"name": "Grace", "unknown": "ignored"})
    patched = controller.get_by_id(1)
    assert patched.name == "Grace"
    assert patched.email == "ada@example.com"
    assert not hasattr(patched, "unknown")

    controller.replace(1, User(name="Linus"))
    replaced = controller.get_by_id(1)
    assert (replaced.id, replaced.name, replaced.email) == (1, "Linus", None)

    controller.delete(1)
    with pytest.raises(exceptions.ResourceNotFoundError) as excinfo:
        controller.get_by_id(1)
    assert str(excinfo.value) == "User not found with id: 1"
    assert excinfo.value.status_code == 404

    with pytest.raises(exceptions.ResourceNotFoundError):
        controller.replace(99, User(name="Nobody"))


def test_generated_records_import_independently(shop_package):
    order_module = importlib.import_module(f"{shop_package}.entities.order")

    assert f"{shop_package}.entities.user" not in sys.modules
    assert order_module.Order.__tablename__ == "order"
    assert order_module.Order().user is None
    assert "__columns__" not in {f.name for f in dataclasses.fields(order_module.Order)}
