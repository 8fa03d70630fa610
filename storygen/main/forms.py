from flask_wtf import FlaskForm
from wtforms import PasswordField, SelectField, SubmitField, TextAreaField
from wtforms.validators import Length, Optional

from ..services.catalog import catalog_choices
from ..services.prompt_composer import PROMPT_MAX_LENGTH


class StoryRequestForm(FlaskForm):
    api_key = PasswordField("Gemini API key", validators=[Optional(), Length(max=256)])
    prompt = TextAreaField("Story Prompt", validators=[Length(max=PROMPT_MAX_LENGTH)])
    story_type = SelectField("Story type", choices=catalog_choices("story_type"), default="", validators=[Optional()])
    character = SelectField("Main character", choices=catalog_choices("character"), default="", validators=[Optional()])
    setting = SelectField("Setting", choices=catalog_choices("setting"), default="", validators=[Optional()])
    submit = SubmitField("Generate Story")
