"""Newick text handling over an explicit token stream.

Tokens are the structural characters ``( ) , : ;`` and the text runs between
them (labels and branch lengths). Both zero-length branch collapsing and leaf
order extraction are defined on this stream.
"""

import re
from typing import List, NamedTuple

from alleletree.core.errors import NewickError

STRUCTURAL = '(),:;'

_TOKEN_RE = re.compile(r'[(),:;]|[^(),:;]+')
_ZERO_LENGTH_RE = re.compile(r'0\.?0*')


class Token(NamedTuple):
    text: str
    offset: int

    @property
    def structural(self):
        return self.text in STRUCTURAL


def tokenize_newick(newick) -> List[Token]:
    """Split Newick text into tokens, keeping each token's character offset."""
    return [Token(m.group(), m.start()) for m in _TOKEN_RE.finditer(newick)]


def _is_zero_length(token):
    return not token.structural and _ZERO_LENGTH_RE.fullmatch(token.text) is not None


def _zero_length_marker(tokens, i):
    """True if tokens[i] is ')' carrying a zero branch length before ',' or ')'."""
    return (
        tokens[i].text == ')'
        and i + 3 < len(tokens)
        and tokens[i + 1].text == ':'
        and _is_zero_length(tokens[i + 2])
        and tokens[i + 3].text in (',', ')')
    )


def _collapse_once(newick):
    tokens = tokenize_newick(newick)
    removed = set()
    open_parens = []

    for i, token in enumerate(tokens):
        if token.text == '(':
            open_parens.append(i)
        elif token.text == ')':
            if not open_parens:
                if _zero_length_marker(tokens, i):
                    raise NewickError(
                        f"Ran out of Newick string while trying to find an open parenthesis. "
                        f"The closing parenthesis at index {token.offset} has no match in "
                        f"the tree: {newick}"
                    )
                continue
            match = open_parens.pop()
            if _zero_length_marker(tokens, i):
                removed.update((match, i, i + 1, i + 2))

    if not removed:
        return newick
    return ''.join(t.text for i, t in enumerate(tokens) if i not in removed)


def collapse_zero_length_branches(newick):
    """Turn internal nodes with a zero branch length into polytomies.

    Each ``):0.00000`` followed by ``,`` or ``)`` is removed together with
    its matching ``(``, so the node's children join its parent. Repeats until
    no such branch remains; other text is left untouched.

    Raises:
        NewickError: If a zero-length branch has no matching open parenthesis.
    """
    while True:
        collapsed = _collapse_once(newick)
        if collapsed == newick:
            return collapsed
        newick = collapsed


def leaf_order(newick):
    """Return leaf labels in the order they appear in the Newick text.

    Leaves are label tokens preceded by '(' or ',' and followed by ':'. A
    tree made of a single leaf (``"A;"``) returns that label.
    """
    tokens = tokenize_newick(newick)
    leaves = []
    for i, token in enumerate(tokens):
        if token.structural:
            continue
        prev = tokens[i - 1].text if i > 0 else None
        nxt = tokens[i + 1].text if i + 1 < len(tokens) else None
        if prev in ('(', ',') and nxt == ':':
            leaves.append(token.text)
        elif prev is None and nxt in (';', None):
            leaves.append(token.text)
    return leaves


__all__ = ['Token', 'collapse_zero_length_branches', 'leaf_order', 'tokenize_newick']
