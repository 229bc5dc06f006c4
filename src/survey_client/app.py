"""Command-line front end for the capture wizard."""
import logging
import sys

import click

from shared.enums import PhotoType
from shared.utils import CorruptedImageError
from shared.validation import ValidationError
from .capture.camera import CaptureController, OpenCVBackend
from .config_manager import ConfigManager
from .errors import CaptureEmpty, SubmitError
from .logging_config import setup_logging
from .services.api_service import APIService
from .services.submit_gateway import SubmitGateway
from .wizard import PhotoWizard, MODE_UPLOAD_FILE

logger = logging.getLogger(__name__)


def build_wizard(config, api, survey_id, environment_id, backend=None):
    """Wire camera, gateway and staging store into a PhotoWizard."""
    camera = CaptureController(backend or OpenCVBackend(), config.camera_max_dimension)
    return PhotoWizard(camera, SubmitGateway(api, config.max_upload_bytes), survey_id, environment_id, settings=config)


@click.command()
@click.option('--username', required=True)
@click.option('--password', required=True, prompt=True, hide_input=True)
@click.option('--survey', 'survey_id', type=int, required=True)
@click.option('--environment', 'environment_id', type=int, required=True)
@click.option('--type', 'photo_type', type=click.Choice([t.value for t in PhotoType]), required=True)
@click.option('--item', 'service_item', default=None, help='Service item label for servicos_itens photos')
@click.option('--width', default=None, help='Painting width in metres ("3,5")')
@click.option('--height', default=None, help='Painting height in metres')
@click.option('--file', 'image_file', type=click.File('rb'), default=None,
              help='Upload this image instead of using the camera')
@click.option('--observation', default=None)
def capture(username, password, survey_id, environment_id, photo_type, service_item,
            width, height, image_file, observation):
    """Capture (or upload) one photo and record it in an environment."""
    setup_logging()
    config = ConfigManager()
    api = APIService.from_config(config)
    if api.login(username, password) is None:
        raise click.ClickException('Login failed')

    try:
        with build_wizard(config, api, survey_id, environment_id) as wizard:
            wizard.select_type(photo_type)
            if service_item:
                if wizard.select_service_item(service_item) is not None:
                    area = wizard.confirm_dimensions(width, height).area
                    click.echo(f"Area: {area} m2")

            mode = wizard.start_capture()
            if image_file is not None:
                wizard.use_file(image_file.read())
            elif mode == MODE_UPLOAD_FILE:
                raise click.ClickException('Camera unavailable; pass --file to upload an image')
            else:
                wizard.shutter()

            record = wizard.submit(observation)
            click.echo(f"Recorded photo {record['id']}: {record['image_url']}")
    except (ValidationError, CorruptedImageError, CaptureEmpty, SubmitError) as e:
        raise click.ClickException(str(e))
    finally:
        api.logout()


if __name__ == '__main__':
    sys.exit(capture())
