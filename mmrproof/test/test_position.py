# Copyright (C) 2026 The python-mmrproof developers
#
# This file is part of python-mmrproof.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-mmrproof, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

import unittest

from mmrproof.position import *
from mmrproof.test import load_test_vectors

class Test_height(unittest.TestCase):
    def test_vectors(self):
        """height() test vectors"""
        for position, expected_height in load_test_vectors('heights.json'):
            self.assertEqual(height(position), expected_height,
                             'position %d' % position)

    def test_perfect_tree_roots(self):
        """Roots of perfect trees are at 2^(h+1)-1"""
        for h in range(64):
            self.assertEqual(height(2**(h+1)-1), h)

    def test_large_positions(self):
        """Positions beyond 64 bits"""
        self.assertEqual(height(2**100-1), 99)
        self.assertEqual(height(2**100), 0)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            height(0)
        with self.assertRaises(ValueError):
            height(-1)

class Test_offsets(unittest.TestCase):
    def test_sibling_offset(self):
        """sibling_offset()"""
        self.assertEqual(sibling_offset(0), 1)
        self.assertEqual(sibling_offset(1), 3)
        self.assertEqual(sibling_offset(2), 7)

    def test_parent_offset(self):
        """parent_offset()"""
        self.assertEqual(parent_offset(0), 2)
        self.assertEqual(parent_offset(1), 4)
        self.assertEqual(parent_offset(2), 8)

    def test_is_right_child(self):
        """is_right_child()"""
        def T(position):
            self.assertTrue(is_right_child(position))
        def F(position):
            self.assertFalse(is_right_child(position))

        F(1)
        T(2)
        F(3)
        F(4)
        T(5)
        T(6)
        F(7)
        F(8)
        T(9)
        F(10)
        T(13)
        T(14)

    def test_siblings_are_same_height(self):
        """Siblings share a height and a parent"""
        for position in range(1, 200):
            h = height(position)
            if is_right_child(position):
                sibling = position - sibling_offset(h)
                parent = position + 1
                left = sibling
            else:
                sibling = position + sibling_offset(h)
                parent = position + parent_offset(h)
                left = position
            self.assertEqual(height(sibling), h)
            self.assertEqual(height(parent), h + 1)
            self.assertEqual(parent, left + parent_offset(h))
            self.assertTrue(is_right_child(max(position, sibling)))
            self.assertFalse(is_right_child(min(position, sibling)))

class Test_find_peaks(unittest.TestCase):
    def test_vectors(self):
        """find_peaks() test vectors"""
        for elements_count, leaves_count, expected_peaks in load_test_vectors('peaks.json'):
            self.assertEqual(find_peaks(elements_count), expected_peaks)

    def test_invalid_sizes(self):
        """find_peaks() on sizes no MMR can have"""
        for elements_count, comment in load_test_vectors('invalid_sizes.json'):
            with self.assertRaises(ValueError):
                find_peaks(elements_count)
        with self.assertRaises(ValueError):
            find_peaks(-1)

    def test_peak_order(self):
        """Peaks increase in position and decrease in height"""
        for leaves_count in range(1, 300):
            peaks = find_peaks(leaf_count_to_mmr_size(leaves_count))
            self.assertEqual(peaks, sorted(peaks))
            heights = [height(peak) for peak in peaks]
            self.assertEqual(heights, sorted(heights, reverse=True))
            self.assertEqual(len(set(heights)), len(heights))

            # One peak per set bit in the leaf count
            self.assertEqual(len(peaks), count_ones(leaves_count))

class Test_sizes(unittest.TestCase):
    def test_count_ones(self):
        """count_ones()"""
        self.assertEqual(count_ones(0), 0)
        self.assertEqual(count_ones(1), 1)
        self.assertEqual(count_ones(0b1011), 3)
        self.assertEqual(count_ones(2**64-1), 64)

    def test_leaf_count_to_mmr_size(self):
        """leaf_count_to_mmr_size() and its inverse"""
        for elements_count, leaves_count, expected_peaks in load_test_vectors('peaks.json'):
            self.assertEqual(leaf_count_to_mmr_size(leaves_count), elements_count)
            self.assertEqual(mmr_size_to_leaf_count(elements_count), leaves_count)

    def test_is_valid_mmr_size(self):
        """is_valid_mmr_size()"""
        for elements_count, leaves_count, expected_peaks in load_test_vectors('peaks.json'):
            self.assertTrue(is_valid_mmr_size(elements_count))
        for elements_count, comment in load_test_vectors('invalid_sizes.json'):
            self.assertFalse(is_valid_mmr_size(elements_count))
        self.assertFalse(is_valid_mmr_size(-1))

        valid = set(leaf_count_to_mmr_size(n) for n in range(100))
        for elements_count in range(max(valid)):
            self.assertEqual(is_valid_mmr_size(elements_count), elements_count in valid)

class Test_leaf_positions(unittest.TestCase):
    def test_leaf_index_to_position(self):
        """leaf_index_to_position()"""
        expected = [1, 2, 4, 5, 8, 9, 11, 12, 16]
        self.assertEqual([leaf_index_to_position(i) for i in range(len(expected))], expected)

        with self.assertRaises(ValueError):
            leaf_index_to_position(-1)

    def test_position_to_leaf_index(self):
        """position_to_leaf_index()"""
        for leaf_index in range(200):
            position = leaf_index_to_position(leaf_index)
            self.assertEqual(height(position), 0)
            self.assertEqual(position_to_leaf_index(position), leaf_index)

        for inner in (3, 6, 7, 10, 15):
            with self.assertRaises(ValueError):
                position_to_leaf_index(inner)

class Test_path_to_peak(unittest.TestCase):
    def test_three_leaves(self):
        """Paths in a MMR of three leaves"""
        self.assertEqual(path_to_peak(1, 4), ([(2, False)], 3))
        self.assertEqual(path_to_peak(2, 4), ([(1, True)], 3))
        self.assertEqual(path_to_peak(3, 4), ([], 3))
        self.assertEqual(path_to_peak(4, 4), ([], 4))

    def test_seven_leaves(self):
        """Paths in a MMR of seven leaves"""
        self.assertEqual(path_to_peak(1, 11), ([(2, False), (6, False)], 7))
        self.assertEqual(path_to_peak(5, 11), ([(4, True), (3, True)], 7))
        self.assertEqual(path_to_peak(8, 11), ([(9, False)], 10))
        self.assertEqual(path_to_peak(11, 11), ([], 11))

    def test_path_length_is_height_of_peak(self):
        for leaves_count in range(1, 70):
            elements_count = leaf_count_to_mmr_size(leaves_count)
            peaks = find_peaks(elements_count)
            for position in range(1, elements_count + 1):
                path, peak = path_to_peak(position, elements_count)
                self.assertIn(peak, peaks)
                self.assertEqual(len(path), height(peak) - height(position))

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            path_to_peak(0, 4)
        with self.assertRaises(ValueError):
            path_to_peak(5, 4)
        with self.assertRaises(ValueError):
            path_to_peak(1, 5)
