import pytest

from alleletree.cluster.newick import collapse_zero_length_branches, leaf_order, tokenize_newick
from alleletree.core.errors import NewickError


def test_tokenize_keeps_offsets():
    tokens = tokenize_newick('(A:1.5,B:2);')
    assert [t.text for t in tokens] == ['(', 'A', ':', '1.5', ',', 'B', ':', '2', ')', ';']
    assert tokens[3].offset == 3
    assert tokens[8].offset == 10
    assert tokens[1].structural is False
    assert tokens[0].structural is True


def test_collapse_single_branch():
    tree = '((A:0.50000,B:0.50000):0.00000,C:0.50000);'
    assert collapse_zero_length_branches(tree) == '(A:0.50000,B:0.50000,C:0.50000);'


def test_collapse_before_closing_paren():
    tree = '((A:1,(B:0.5,C:0.5):0.00000):1,D:2);'
    assert collapse_zero_length_branches(tree) == '((A:1,B:0.5,C:0.5):1,D:2);'


def test_collapse_nested_chain():
    tree = '(((A:0.5,B:0.5):0,C:0.5):0.00000,D:0.5);'
    assert collapse_zero_length_branches(tree) == '(A:0.5,B:0.5,C:0.5,D:0.5);'


def test_collapse_leaves_other_text_alone():
    for tree in (
        '((A:1,B:1):0.00001,C:1);',
        '(A:0.00000,B:1.00000);',
        '((A:1,B:1):10.00000,C:1);',
        'A;',
    ):
        assert collapse_zero_length_branches(tree) == tree


def test_collapse_is_a_fixed_point():
    tree = '(((A:0.5,B:0.5):0.00000,(C:0.5,D:0.5):0.00000):0.00000,E:0.5);'
    once = collapse_zero_length_branches(tree)
    assert once == '(A:0.5,B:0.5,C:0.5,D:0.5,E:0.5);'
    assert collapse_zero_length_branches(once) == once


def test_unmatched_marker_raises():
    with pytest.raises(NewickError, match='index 7'):
        collapse_zero_length_branches('A:1,B:1):0.00000,C:1);')


def test_leaf_order():
    assert leaf_order('((A:0.5,B:0.5):0.25,C:0.75);') == ['A', 'B', 'C']
    assert leaf_order('(C:1,(B:0.5,A:0.5):0.5);') == ['C', 'B', 'A']
    # internal labels follow ')' and are not leaves
    assert leaf_order('((A:1,B:1)X:1,C:2);') == ['A', 'B', 'C']


def test_leaf_order_single_leaf():
    assert leaf_order('A;') == ['A']
