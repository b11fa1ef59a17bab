"""
Image validation for the optional photo embedded in an item report.
The photo arrives already compressed by the client as a base64 data URL.
"""
import base64
import binascii
import io
import logging
import warnings

from PIL import Image, UnidentifiedImageError

_logger = logging.getLogger(__name__)


class ImageValidationService:
    """Service class for validating embedded item photos"""

    MAX_DATA_URL_LENGTH = 950_000  # Firestore documents are capped at ~1MB
    ALLOWED_FORMATS = ['JPEG', 'PNG', 'WEBP', 'GIF']

    @classmethod
    def validate_data_url(cls, data_url, max_length=None):
        """
        Validate a `data:image/...;base64,` payload.

        Returns:
            dict: Validation result with success status, error messages and image info
        """
        validation_result = {
            'success': True,
            'errors': [],
            'image_info': {}
        }
        max_length = max_length or cls.MAX_DATA_URL_LENGTH

        if not isinstance(data_url, str) or not data_url.startswith('data:image'):
            validation_result['success'] = False
            validation_result['errors'].append('Image must be a data:image URL')
            return validation_result

        if len(data_url) > max_length:
            validation_result['success'] = False
            validation_result['errors'].append(
                f'Image is too large ({len(data_url)} characters, maximum {max_length}). Please choose a smaller image.'
            )
            return validation_result

        try:
            header, b64 = data_url.split(',', 1)
        except ValueError:
            validation_result['success'] = False
            validation_result['errors'].append('Malformed data URL')
            return validation_result
        if ';base64' not in header:
            validation_result['success'] = False
            validation_result['errors'].append('Image data must be base64 encoded')
            return validation_result

        try:
            raw = base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError) as e:
            validation_result['success'] = False
            validation_result['errors'].append(f'Base64 decode failed: {str(e)}')
            return validation_result

        # Open and validate image with PIL
        try:
            # Oversized pixel counts are refused, not just warned about
            with warnings.catch_warnings():
                warnings.simplefilter('error', Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(raw)) as img:
                    width, height = img.size
                    format_type = img.format
                    img.verify()
        except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
            _logger.info('Rejected oversized embedded image: %s', str(e))
            validation_result['success'] = False
            validation_result['errors'].append('Image dimensions are too large')
            return validation_result
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            _logger.info('Rejected embedded image: %s', str(e))
            validation_result['success'] = False
            validation_result['errors'].append('Image data could not be decoded')
            return validation_result

        validation_result['image_info'] = {
            'width': width,
            'height': height,
            'format': format_type,
            'bytes': len(raw),
        }
        if format_type not in cls.ALLOWED_FORMATS:
            validation_result['success'] = False
            validation_result['errors'].append(
                f'Unsupported image format ({format_type}). Allowed formats: {", ".join(cls.ALLOWED_FORMATS)}'
            )
        return validation_result
