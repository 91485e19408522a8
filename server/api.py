import os
import traceback
from dataclasses import replace

from flask import Flask, jsonify, request

from config import load_account, load_login_details
from errors import ConfigError, LoginError, PromptCancelledError
from okta_login import OktaClient
from prompter import ScriptedPrompter

app = Flask(__name__)


@app.route('/api/login', methods=['POST'])
def login():
    """
    Run an Okta login with the credentials from the environment.

    Optional JSON body:
        mfa             factor preference, e.g. "SMS" (overrides OKTA_MFA)
        choice          answer for the factor prompt (label prefix or index)
        duo_mfa_option  "Duo Push" or "Passcode"
        passcode        one-time code for SMS/TOTP/Duo passcode factors
    """
    body = request.get_json(silent=True) or {}

    try:
        account = load_account()
        details = load_login_details()
    except ConfigError as e:
        return jsonify({'error': str(e)}), 400

    if body.get('mfa'):
        account = replace(account, mfa=body['mfa'])
    if body.get('duo_mfa_option'):
        details = replace(details, duo_mfa_option=body['duo_mfa_option'])

    prompter = ScriptedPrompter(
        choices=[body['choice']] if body.get('choice') is not None else [],
        strings=[body['passcode']] if body.get('passcode') else [],
    )

    try:
        saml_response = OktaClient(account, prompter).authenticate(details)
    except PromptCancelledError as e:
        return jsonify({'error': f'More input needed: {e}'}), 400
    except LoginError as e:
        return jsonify({'error': str(e)}), 401
    except Exception as e:
        traceback.print_exc()
        return jsonify({'error': f'Login failed: {str(e)}'}), 500

    return jsonify({
        'status': 'success',
        'saml_response': saml_response,
    })


@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port)
