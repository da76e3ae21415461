import pytest

from waxpacks.kotlin_syntax import (
    CallSite,
    FunctionDecl,
    KotlinSyntaxError,
    TokenKind,
    function_declarations,
    simple_calls,
    tokenize,
)


def call_names(source):
    return [call.name for call in simple_calls(tokenize(source))]


def declarations(source):
    return function_declarations(tokenize(source))


def test_tokenize_kinds_and_texts():
    tokens = tokenize("fun Screen() {}")
    assert [t.text for t in tokens] == ["fun", "Screen", "(", ")", "{", "}"]
    assert tokens[0].kind is TokenKind.KEYWORD
    assert tokens[1].kind is TokenKind.IDENTIFIER
    assert all(t.kind is TokenKind.PUNCT for t in tokens[2:])


def test_token_positions_point_at_their_text():
    source = "val x = 1\n  fun Screen() {\n    PrimaryButton(onClick = {})\n}"
    lines = source.split("\n")
    for token in tokenize(source):
        assert token.line >= 1 and token.column >= 1
        assert lines[token.line - 1][token.column - 1 :].startswith(token.text)


def test_newline_before_flag():
    tokens = tokenize("a\nb c")
    assert [t.newline_before for t in tokens] == [False, True, False]


def test_columns_count_utf8_bytes():
    source = "val é = Foo()"
    foo = next(t for t in tokenize(source) if t.text == "Foo")
    assert foo.column == len("val é = ".encode("utf-8")) + 1


def test_direct_call_to_symbol_is_found():
    source = "@Composable\nfun Screen() { PrimaryButton(onClick = {}) }"
    assert call_names(source) == ["PrimaryButton"]


def test_comment_lines_are_not_calls():
    assert call_names("// PrimaryButton( not a call\nfun Screen() {}") == []


def test_string_literal_content_is_not_a_call():
    source = 'val label = "TextField(not a call)"\nfun Screen() {}'
    tokens = tokenize(source)
    assert call_names(source) == []
    strings = [t.text for t in tokens if t.kind is TokenKind.STRING]
    assert strings == ['"TextField(not a call)"']


def test_qualified_call_is_not_a_simple_call():
    source = "@Composable\nfun Screen() { com.example.PrimaryButton(onClick = {}) }"
    assert "PrimaryButton" not in call_names(source)


def test_multiline_call_is_reported_at_its_first_line():
    source = "@Composable\nfun Screen() {\n    PrimaryButton(\n        onClick = {},\n    )\n}"
    calls = simple_calls(tokenize(source))
    assert calls == [CallSite(name="PrimaryButton", line=3, column=5)]


def test_trailing_lambda_is_a_call():
    assert call_names("@Composable\nfun Screen() { LocalCard {} }") == ["LocalCard"]


def test_generic_call_and_comparison():
    assert call_names("val s = remember<Int> { 0 }") == ["remember"]
    assert call_names("val r = a < b && c > (d)") == []


def test_return_type_is_not_a_call():
    assert call_names("fun f(): Foo { }") == []


def test_string_template_calls_are_found():
    source = 'val s = "${Foo()}"'
    tokens = tokenize(source)
    assert tokens[3].kind is TokenKind.STRING
    assert tokens[3].text == '"${Foo()}"'
    assert call_names(source) == ["Foo"]


def test_raw_string_spans_lines():
    source = 'val s = """\nBar()\n"""\nBaz()'
    assert call_names(source) == ["Baz"]


def test_nested_block_comment_is_skipped():
    assert call_names("/* a /* b */ Foo() */ Bar()") == ["Bar"]


def test_char_literal_with_quote():
    tokens = tokenize("val c = '\"'")
    assert [t.kind for t in tokens][-1] is TokenKind.CHAR


def test_label_is_not_an_annotation():
    tokens = tokenize("list.forEach { return@forEach }")
    kinds = [t.kind for t in tokens]
    assert TokenKind.ANNOTATION not in kinds
    assert tokens[0].text == "list"
    assert tokens[-1].text == "}"


def test_composable_declaration_is_found():
    decls = declarations("@Composable\nfun MyScreen() {}")
    assert [d.name for d in decls] == ["MyScreen"]
    assert decls[0].annotations == ("Composable",)
    assert decls[0].line == 2


def test_non_annotated_declaration_has_no_annotations():
    assert declarations("fun helper() {}") == [
        FunctionDecl(name="helper", line=1, column=5, annotations=())
    ]


def test_modifiers_keep_annotations_but_other_tokens_drop_them():
    kept = declarations("@Composable\nprivate fun Foo() {}")
    dropped = declarations("@Composable\nval x = 1\nfun Foo() {}")
    assert kept[0].annotations == ("Composable",)
    assert dropped[0].annotations == ()


def test_annotation_arguments_and_use_site_target():
    decls = declarations('@Suppress("x")\n@get:Composable\nfun Foo() {}')
    assert decls[0].annotations == ("Suppress", "Composable")


def test_qualified_annotation_uses_first_segment():
    decls = declarations("@androidx.compose.runtime.Composable\nfun Foo() {}")
    assert decls[0].annotations == ("androidx",)


def test_extension_and_generic_function_names():
    assert [d.name for d in declarations("fun Modifier.Card() {}")] == ["Card"]
    assert [d.name for d in declarations("fun <T> Box(value: T) {}")] == ["Box"]
    assert call_names("fun <T> Box(value: T) {}") == []


def test_fun_interface_and_anonymous_functions_are_not_declarations():
    assert [d.name for d in declarations("fun interface Listener { fun onEvent() }")] == [
        "onEvent"
    ]
    assert declarations("val f = fun(x: Int) = x") == []


@pytest.mark.parametrize(
    "source",
    ['val s = "abc', "/* open", "val c = 'a", "val `x = 1", 'val s = "${Foo("'],
)
def test_unterminated_constructs_raise(source):
    with pytest.raises(KotlinSyntaxError):
        tokenize(source)


def test_syntax_error_reports_position():
    with pytest.raises(KotlinSyntaxError) as info:
        tokenize('\nval s = "abc')
    assert info.value.line == 2
    prefix = "{}:{}:".format(info.value.line, info.value.column)
    assert str(info.value).startswith(prefix)