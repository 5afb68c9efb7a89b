"""Lexer for the textual criteria language."""

import re

import ply.lex as lex


class CriteriaLexer:
    """Lexer for tokenizing criteria expressions."""

    # Reserved keywords
    reserved = {
        "and": "AND",
        "between": "BETWEEN",
        "inclusive": "INCLUSIVE",
        "in": "IN",
        "is": "IS",
        "not": "NOT",
        "empty": "EMPTY",
        "contains": "CONTAINS",
        "starts": "STARTS",
        "ends": "ENDS",
        "with": "WITH",
        "matches": "MATCHES",
        "field": "FIELD",
        "sort": "SORT",
        "asc": "ASC",
        "ascending": "ASC",
        "desc": "DESC",
        "descending": "DESC",
        "offset": "OFFSET",
        "limit": "LIMIT",
        "case": "CASE",
        "sensitive": "SENSITIVE",
        "insensitive": "INSENSITIVE",
        "true": "TRUE",
        "false": "FALSE",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "INTEGER",
        "FLOAT",
        "STRING",
        "REGEX",
        "COMMA",
        "LPAREN",
        "RPAREN",
        "EQ",
        "NEQ",
        "LT",
        "LTE",
        "GT",
        "GTE",
    ] + sorted(set(reserved.values()))

    # Lexer states: regex state for /pattern/ after MATCHES keyword
    states = (("regex", "exclusive"),)

    t_COMMA = r","
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_EQ = r"="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_LT = r"<"
    t_GTE = r">="
    t_GT = r">"

    t_ignore = " \t"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+\.\d+"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+"
        t.value = int(t.value)
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"([^"\\]|\\.)*"'
        t.value = re.sub(r"\\(.)", r"\1", t.value[1:-1])
        return t

    def t_BACKTICK_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"`[^`]+`"
        # Always an IDENTIFIER, even when the name is a keyword
        t.value = t.value[1:-1]
        t.type = "IDENTIFIER"
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_.]*"
        t.type = self.reserved.get(t.value.lower(), "IDENTIFIER")
        if t.type == "MATCHES":
            t.lexer.begin("regex")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    # --- Exclusive regex state tokens ---

    t_regex_ignore = " \t"

    def t_regex_REGEX(self, t: lex.LexToken) -> lex.LexToken:
        r"/([^/\\]|\\.)*/"
        t.value = t.value[1:-1].replace("\\/", "/")
        t.lexer.begin("INITIAL")
        return t

    def t_regex_error(self, t: lex.LexToken) -> None:
        t.lexer.begin("INITIAL")
        raise SyntaxError(f"Expected regex pattern after 'matches', got '{t.value[0]}' at position {t.lexpos}")

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.begin("INITIAL")
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
