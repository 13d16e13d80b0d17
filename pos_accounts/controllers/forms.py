"""Forms for the registration and login views."""

from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length


class RegistrationForm(Form):
    """New account registration form."""

    email = StringField('Email address',
                        validators=[Email(), Length(max=255), DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])
    first_name = StringField('First name',
                             validators=[Length(min=1, max=100),
                                         DataRequired()])
    last_name = StringField('Last name',
                            validators=[Length(min=1, max=100),
                                        DataRequired()])


class LoginForm(Form):
    """Log in form."""

    email = StringField('Email address', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])
