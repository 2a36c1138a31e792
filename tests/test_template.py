import pytest

from proto2rsgrpc.errors import TemplateError
from proto2rsgrpc.template import Printer, render


def test_emit_dedents_and_substitutes_variables() -> None:
    output = render(
        """
        let path = "$path$";
        let name = $name$;
        """,
        {"path": "/pkg.Svc/Call", "name": "call"},
    )

    assert output == 'let path = "/pkg.Svc/Call";\nlet name = call;\n'


def test_lone_callback_placeholder_is_indented() -> None:
    printer = Printer()
    printer.emit(
        """
        fn $name$() {
            $body$
        }
        """,
        {"name": "f", "body": lambda: printer.emit("let x = 1;\nlet y = 2;\n")},
    )

    assert printer.text == "fn f() {\n    let x = 1;\n    let y = 2;\n}\n"


def test_lone_multiline_string_is_indented() -> None:
    output = render(
        """
        mod m {
            $doc$
            struct S;
        }
        """,
        {"doc": "/// first\n/// second\n"},
    )

    assert output == "mod m {\n    /// first\n    /// second\n    struct S;\n}\n"


def test_line_with_empty_lone_placeholder_is_removed() -> None:
    output = render("a\n    $doc$\nb\n", {"doc": ""})

    assert output == "a\nb\n"


def test_inline_callback_is_captured() -> None:
    printer = Printer()
    printer.emit("x = $value$;", {"value": lambda: printer.emit("42")})

    assert printer.text == "x = 42;\n"


def test_double_dollar_is_a_literal_dollar() -> None:
    assert render("cost: $$5", {}) == "cost: $5\n"


def test_blank_lines_are_not_indented() -> None:
    printer = Printer()
    printer.emit(
        """
        impl S {
            $items$
        }
        """,
        {"items": lambda: printer.emit("fn a() {}\n\nfn b() {}\n")},
    )

    assert printer.text == "impl S {\n    fn a() {}\n\n    fn b() {}\n}\n"


def test_with_vars_scopes_are_layered() -> None:
    printer = Printer()
    with printer.with_vars({"outer": "o", "shadowed": "outer"}):
        printer.emit("$outer$ $shadowed$", {"shadowed": "inner"})
        printer.emit("$shadowed$")

    assert printer.text == "o inner\nouter\n"


def test_unknown_variable_raises() -> None:
    with pytest.raises(TemplateError):
        render("$missing$", {})

    printer = Printer()
    with printer.with_vars({"a": "1"}):
        pass
    with pytest.raises(TemplateError):
        printer.emit("$a$")
