import unittest

import numpy as np

from depthparallax.model.material import DisplacementMaterial, MaterialManager


def _photo(width: int = 4, height: int = 3) -> np.ndarray:
    return np.full((height, width, 3), 128, dtype=np.uint8)


class DisplacementMaterialTests(unittest.TestCase):
    def test_defaults(self) -> None:
        material = DisplacementMaterial(_photo())
        self.assertIsNone(material.displacement_map)
        self.assertEqual(material.displacement_scale, 0.75)
        self.assertEqual(material.image_size, (4, 3))
        self.assertTrue(material.needs_update)

    def test_color_texture_is_copied_and_frozen(self) -> None:
        photo = _photo()
        material = DisplacementMaterial(photo)
        photo[:] = 0
        self.assertEqual(int(material.color_texture[0, 0, 0]), 128)
        with self.assertRaises(ValueError):
            material.color_texture[0, 0, 0] = 1

    def test_rejects_non_colour_image(self) -> None:
        with self.assertRaises(ValueError):
            DisplacementMaterial(np.zeros((3, 4), dtype=np.uint8))

    def test_last_map_wins(self) -> None:
        material = DisplacementMaterial(_photo())
        material.set_displacement_map(np.zeros((3, 4), dtype=np.uint8))
        material.set_displacement_map(np.full((3, 4), 255, dtype=np.uint8))
        np.testing.assert_allclose(material.displacement_map, 1.0)
        self.assertEqual(material.version, 2)

    def test_changes_raise_update_flag(self) -> None:
        material = DisplacementMaterial(_photo())
        material.mark_clean()
        self.assertFalse(material.needs_update)

        material.set_displacement_scale(0.2)
        self.assertTrue(material.needs_update)
        self.assertEqual(material.displacement_scale, 0.2)


class MaterialManagerTests(unittest.TestCase):
    def test_operations_without_material_are_ignored(self) -> None:
        manager = MaterialManager()
        self.assertFalse(manager.set_displacement_map(np.zeros((2, 2), dtype=np.uint8)))
        self.assertFalse(manager.set_displacement_scale(0.5))
        self.assertIsNone(manager.material)

    def test_release_drops_material(self) -> None:
        manager = MaterialManager()
        manager.create(_photo())
        self.assertTrue(manager.set_displacement_scale(0.1))
        manager.release()
        self.assertIsNone(manager.material)
        self.assertFalse(manager.set_displacement_scale(0.3))


if __name__ == "__main__":
    unittest.main()
