"""Tree building from distance matrices.

Submodules:
- upgma: UPGMA agglomerative clustering
- newick: Newick tokenising, zero-length branch collapsing, leaf order
- reorder: Permuting the distance matrix to the tree's leaf order
"""

__all__ = ['upgma', 'newick', 'reorder']
