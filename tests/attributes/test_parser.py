from pathlib import Path

import pytest

from cppAttributes.exceptions import AttributeSyntaxError, SourceNotFoundError
from cppAttributes.model import (
    DEPENDS_ATTRIBUTE,
    EXPORT_ATTRIBUTE,
    INTERFACE_HOST,
    INTERFACE_NATIVE,
    INTERFACES_ATTRIBUTE,
    Argument,
)
from cppAttributes.parser import parse_source_file, parse_source_text

SOURCE = """#include <Rcpp.h>
using namespace Rcpp;

// [[Rcpp::interfaces(r, cpp)]]

//' Add two numbers.
//' @param x first
// [[Rcpp::export]]
int add(int x, int y) {
    return x + y;
}

// [[Rcpp::export(.hiddenScale)]]
double scale(double value,
             double factor = 2.0) {
    return value * factor;
}

// [[Rcpp::depends(RcppArmadillo, BH)]]
"""


def test_parse_source_text_collects_attributes_in_order() -> None:
    attributes = parse_source_text(SOURCE)

    assert [attr.name for attr in attributes] == [
        INTERFACES_ATTRIBUTE,
        EXPORT_ATTRIBUTE,
        EXPORT_ATTRIBUTE,
        DEPENDS_ATTRIBUTE,
    ]
    interfaces, add, scale, depends = attributes

    assert [param.name for param in interfaces.params] == ["r", "cpp"]
    assert interfaces.function.is_empty()

    assert add.function.name == "add"
    assert add.function.return_type == "int"
    assert add.function.arguments == (Argument("x", "int"), Argument("y", "int"))
    assert add.doc_lines == (" Add two numbers.", " @param x first")
    assert add.exported_name == "add"

    assert scale.exported_name == ".hiddenScale"
    assert scale.function.name == "scale"
    assert scale.function.arguments[1] == Argument("factor", "double", "2.0")
    assert scale.doc_lines == ()

    assert [param.name for param in depends.params] == ["RcppArmadillo", "BH"]


def test_template_arguments_are_not_split_on_commas() -> None:
    text = (
        "// [[Rcpp::export]]\n"
        "std::map<std::string, int> tally(const std::vector<std::string>& words, int limit);\n"
    )
    (attribute,) = parse_source_text(text)
    function = attribute.function

    assert function.return_type == "std::map<std::string, int>"
    assert function.argument_names() == ["words", "limit"]
    assert function.argument_types() == ["const std::vector<std::string>&", "int"]


def test_export_without_function_has_empty_signature() -> None:
    (attribute,) = parse_source_text("// [[Rcpp::export]]\nint value = 3;\n")
    assert attribute.name == EXPORT_ATTRIBUTE
    assert attribute.function.is_empty()
    assert not attribute.is_exported_function


def test_named_parameters_keep_their_values() -> None:
    (attribute,) = parse_source_text('// [[Rcpp::export(name = "renamed")]]\nvoid f() {}\n')
    assert attribute.params[0].name == "name"
    assert attribute.params[0].value == "renamed"
    assert attribute.exported_name == "name"
    assert attribute.function.arguments == ()


def test_unknown_attributes_are_skipped() -> None:
    attributes = parse_source_text("// [[Rcpp::plugins(cpp11)]]\nint f();\n")
    assert attributes == []


def test_unknown_interface_raises(tmp_path: Path) -> None:
    with pytest.raises(AttributeSyntaxError) as excinfo:
        parse_source_text("// [[Rcpp::interfaces(python)]]\n", tmp_path / "a.cpp")
    assert excinfo.value.line == 1


def test_unnamed_argument_raises() -> None:
    with pytest.raises(AttributeSyntaxError):
        parse_source_text("// [[Rcpp::export]]\nint f(int);\n")


def test_parse_source_file_reports_interfaces(tmp_path: Path) -> None:
    source = tmp_path / "demo.cpp"
    source.write_text(SOURCE, encoding="utf-8")

    attributes = parse_source_file(source)

    assert attributes.source_file == source
    assert len(attributes) == 4
    assert attributes.has_interface(INTERFACE_NATIVE)
    assert attributes.has_interface(INTERFACE_HOST)
    assert attributes.prototypes == [
        "int add(int x, int y)",
        "double scale(double value, double factor)",
    ]


def test_missing_source_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SourceNotFoundError):
        parse_source_file(tmp_path / "missing.cpp")
