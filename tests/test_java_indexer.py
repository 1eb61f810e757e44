"""Tests for Java extraction and call resolution (requires tree-sitter-java)."""

import textwrap

import pytest

pytest.importorskip("tree_sitter_java")

from code_coupling_engine.analyzer import ModuleAnalyzer
from code_coupling_engine.indexer import index_codebase, method_call_graph
from code_coupling_engine.languages.java import JavaExtractor


SOURCES = {
    "shop/Order.java": """
        package shop;

        import java.util.List;

        public class Order {
            private Invoice invoice;
            private Customer customer;

            public void checkout(List<String> items) {
                invoice.total();
                this.invoice.total();
                customer.notifyCustomer();
                validate();
            }

            private void validate() {
            }
        }
    """,
    "shop/Invoice.java": """
        package shop;

        public class Invoice {
            public int total() {
                return Tax.rate();
            }
        }
    """,
    "shop/Customer.java": """
        package shop;

        public class Customer {
            public void notifyCustomer() {
                Mailer mailer = new Mailer();
                mailer.send("hello");
                System.out.println("sent");
            }
        }

        class Mailer {
            void send(String text) {
            }
        }
    """,
    "shop/Special.java": """
        package shop;

        public class Special extends Invoice {
            int discounted(Customer c, String... codes) {
                c.notifyCustomer();
                return super.total() + total();
            }
        }
    """,
}


@pytest.fixture
def project(tmp_path):
    for rel, source in SOURCES.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
    return tmp_path


# ---------------------------------------------------------------------------
# JavaExtractor
# ---------------------------------------------------------------------------

class TestJavaExtractor:
    def test_class_members(self, project):
        content = (project / "shop/Order.java").read_text()
        (order,) = JavaExtractor().extract(content, project / "shop/Order.java")
        assert order.qualified_name == "shop.Order"
        assert order.package == "shop"
        assert [(f.type_name, f.name) for f in order.fields] == [("Invoice", "invoice"), ("Customer", "customer")]
        checkout, validate = order.methods
        assert checkout.name == "checkout"
        assert checkout.param_count == 1
        assert checkout.type_of("items") == "List"
        assert [(i.receiver, i.method_name) for i in checkout.invocations] == [
            ("invoice", "total"),
            ("this.invoice", "total"),
            ("customer", "notifyCustomer"),
            (None, "validate"),
        ]

    def test_superclass_and_varargs(self, project):
        content = (project / "shop/Special.java").read_text()
        (special,) = JavaExtractor().extract(content, project / "shop/Special.java")
        assert special.superclass == "Invoice"
        (method,) = special.methods
        assert method.param_count == 2
        assert method.type_of("c") == "Customer"

    def test_secondary_and_nested_classes(self):
        source = textwrap.dedent("""
            class Outer {
                static class Inner {
                    void run() {}
                }
            }
            interface Shape {
                class Square {}
            }
            enum Color {
                RED;
                class Shade {}
            }
        """)
        units = JavaExtractor().extract(source, None)
        assert [u.qualified_name for u in units] == [
            "Outer", "Outer.Inner", "Shape.Square", "Color.Shade",
        ]


# ---------------------------------------------------------------------------
# index_codebase
# ---------------------------------------------------------------------------

class TestIndexCodebase:
    def test_units_sorted_by_qualified_name(self, project):
        graph = index_codebase(project)
        assert [u.qualified_name for u in graph.list_units()] == [
            "shop.Customer", "shop.Invoice", "shop.Mailer", "shop.Order", "shop.Special",
        ]

    def test_resolved_call_counts(self, project):
        graph = index_codebase(project)
        units = {u.name: u for u in graph.list_units()}
        assert graph.call_count(units["Order"], units["Invoice"]) == 2
        assert graph.call_count(units["Order"], units["Customer"]) == 1
        assert graph.call_count(units["Customer"], units["Mailer"]) == 1
        # super.total() and the inherited total()
        assert graph.call_count(units["Special"], units["Invoice"]) == 2
        assert graph.call_count(units["Special"], units["Customer"]) == 1
        assert graph.total() == 7

    def test_focus_and_exclude(self, project):
        graph = index_codebase(project, exclude_patterns=["*Special.java"])
        assert "Special" not in [u.name for u in graph.list_units()]
        graph = index_codebase(project, focus_patterns=["Order.java"])
        assert [u.name for u in graph.list_units()] == ["Order"]

    def test_not_a_directory(self, project):
        with pytest.raises(NotADirectoryError):
            index_codebase(project / "shop/Order.java")

    def test_method_call_graph(self, project):
        graph = index_codebase(project)
        calls = method_call_graph(graph.list_units())
        assert calls["Order.checkout"] == [
            "Invoice.total", "Customer.notifyCustomer", "Order.validate",
        ]
        assert calls["Customer.notifyCustomer"] == ["Mailer.send", "println (ext)"]
        assert calls["Invoice.total"] == ["rate (ext)"]
        assert calls["Order.validate"] == []

    def test_modules_from_sources(self, project):
        analyzer = ModuleAnalyzer.from_path(project)
        result = analyzer.identify_modules(0.0)
        members = sorted(u.name for m in result.modules for u in m.units)
        assert members == ["Customer", "Invoice", "Mailer", "Order", "Special"]

    def test_duplicate_class_names_keep_first_declaration(self, tmp_path, caplog):
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        (tmp_path / "a/Util.java").write_text("class Util { void help() { } }\n")
        (tmp_path / "b/Util.java").write_text("class Util { void other() { } }\n")
        (tmp_path / "a/Main.java").write_text(
            "class Main { Util util; void run() { util.help(); } }\n"
        )

        with caplog.at_level("WARNING", logger="code_coupling_engine.indexer"):
            graph = index_codebase(tmp_path)

        units = {u.name: u for u in graph.list_units()}
        assert [u.name for u in graph.list_units()] == ["Main", "Util"]
        assert [m.name for m in units["Util"].methods] == ["help"]
        assert graph.call_count(units["Main"], units["Util"]) == 1
        assert "declared in both" in caplog.text

        analyzer = ModuleAnalyzer.from_path(tmp_path)
        assert analyzer.total_calls == 1
