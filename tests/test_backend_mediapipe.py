"""Tests for the MediaPipe face backend helpers (no model needed)."""

from types import SimpleNamespace

import numpy as np
import pytest

from faceoverlay.backends import (
    DetectorOptions,
    FaceDetectionBackend,
    create_backend,
)
from faceoverlay.backends.mediapipe_face import (
    MESH_INDICES,
    MediaPipeFaceBackend,
    landmarks_to_face,
    smile_from_blendshapes,
)
from faceoverlay.conversion import camera_image_from_bgr, convert_camera_image
from faceoverlay.errors import DetectionError
from faceoverlay.types import LandmarkKind, Point


@pytest.fixture
def mesh():
    """478 normalized points spread over [0.2, 0.6] x [0.1, 0.7]."""
    rng = np.random.default_rng(7)
    points = np.column_stack([
        rng.uniform(0.2, 0.6, 478),
        rng.uniform(0.1, 0.7, 478),
    ]).astype(np.float32)
    points[MESH_INDICES[LandmarkKind.NOSE_BASE]] = (0.4, 0.5)
    return points


def _category(name, score):
    return SimpleNamespace(category_name=name, score=score)


class TestLandmarksToFace:
    def test_box_is_landmark_extent(self, mesh):
        face = landmarks_to_face(mesh, width=100, height=200)
        box = face.bounding_box
        assert box.left == pytest.approx(float(mesh[:, 0].min()) * 100)
        assert box.right == pytest.approx(float(mesh[:, 0].max()) * 100)
        assert box.top == pytest.approx(float(mesh[:, 1].min()) * 200)
        assert box.bottom == pytest.approx(float(mesh[:, 1].max()) * 200)

    def test_named_landmarks_in_pixels(self, mesh):
        face = landmarks_to_face(mesh, width=100, height=200)
        assert set(face.landmarks) == set(LandmarkKind)
        nose = face.landmarks[LandmarkKind.NOSE_BASE]
        assert (nose.x, nose.y) == pytest.approx((40.0, 100.0))

    def test_landmarks_disabled(self, mesh):
        face = landmarks_to_face(mesh, 100, 200, enable_landmarks=False)
        assert face.landmarks == {}

    def test_short_mesh_drops_missing_landmarks(self):
        points = np.full((300, 2), 0.5, dtype=np.float32)
        face = landmarks_to_face(points, 100, 100)
        assert LandmarkKind.LEFT_EYE not in face.landmarks
        assert LandmarkKind.RIGHT_EYE not in face.landmarks
        assert face.landmarks[LandmarkKind.NOSE_BASE] == Point(50.0, 50.0)

    def test_smile_passed_through(self, mesh):
        assert landmarks_to_face(mesh, 10, 10, smile_probability=0.8).smile_probability == 0.8


class TestSmileFromBlendshapes:
    def test_mean_of_mouth_smiles(self):
        categories = [
            _category("browInnerUp", 0.9),
            _category("mouthSmileLeft", 0.6),
            _category("mouthSmileRight", 0.8),
        ]
        assert smile_from_blendshapes(categories) == pytest.approx(0.7)

    def test_absent(self):
        assert smile_from_blendshapes([_category("jawOpen", 0.3)]) is None

    def test_clamped(self):
        categories = [_category("mouthSmileLeft", 1.2), _category("mouthSmileRight", 1.1)]
        assert smile_from_blendshapes(categories) == 1.0


class TestBackend:
    def test_satisfies_protocol(self):
        assert isinstance(MediaPipeFaceBackend(), FaceDetectionBackend)

    def test_default_options(self):
        assert MediaPipeFaceBackend().options == DetectorOptions()

    def test_detect_before_initialize(self, bgr_frame):
        image = convert_camera_image(camera_image_from_bgr(bgr_frame))
        with pytest.raises(RuntimeError, match="not initialized"):
            MediaPipeFaceBackend().detect(image)

    def test_cleanup_without_initialize(self):
        MediaPipeFaceBackend().cleanup()

    def test_create_backend(self):
        options = DetectorOptions(max_faces=1)
        backend = create_backend("mediapipe", options)
        assert isinstance(backend, MediaPipeFaceBackend)
        assert backend.options.max_faces == 1

    def test_create_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown detection backend"):
            create_backend("dlib")


class FakeLandmarker:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.closed = False

    def detect(self, image):
        if self.error is not None:
            raise self.error
        return self.result

    def close(self):
        self.closed = True


class TestDetectWithFakeLandmarker:
    @pytest.fixture
    def image(self, bgr_frame):
        pytest.importorskip("mediapipe")
        return convert_camera_image(camera_image_from_bgr(bgr_frame))

    def _backend(self, landmarker, **options):
        backend = MediaPipeFaceBackend(DetectorOptions(**options))
        backend._landmarker = landmarker
        backend._initialized = True
        return backend

    def test_faces_from_result(self, image, mesh):
        result = SimpleNamespace(
            face_landmarks=[[SimpleNamespace(x=float(x), y=float(y)) for x, y in mesh]],
            face_blendshapes=[[_category("mouthSmileLeft", 0.9), _category("mouthSmileRight", 0.7)]],
        )
        faces = self._backend(FakeLandmarker(result)).detect(image)

        assert len(faces) == 1
        assert faces[0].smile_probability == pytest.approx(0.8)
        nose = faces[0].landmarks[LandmarkKind.NOSE_BASE]
        assert (nose.x, nose.y) == pytest.approx((0.4 * 64, 0.5 * 48))

    def test_classification_disabled(self, image, mesh):
        result = SimpleNamespace(
            face_landmarks=[[SimpleNamespace(x=float(x), y=float(y)) for x, y in mesh]],
            face_blendshapes=[[_category("mouthSmileLeft", 0.9)]],
        )
        faces = self._backend(FakeLandmarker(result), enable_classification=False).detect(image)
        assert faces[0].smile_probability is None

    def test_no_faces(self, image):
        result = SimpleNamespace(face_landmarks=[], face_blendshapes=[])
        assert self._backend(FakeLandmarker(result)).detect(image) == []

    def test_inference_error_wrapped(self, image):
        backend = self._backend(FakeLandmarker(error=RuntimeError("graph failed")))
        with pytest.raises(DetectionError, match="graph failed"):
            backend.detect(image)

    def test_cleanup_closes_landmarker(self):
        landmarker = FakeLandmarker()
        backend = self._backend(landmarker)
        backend.cleanup()
        assert landmarker.closed
