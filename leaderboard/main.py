from flask import Blueprint, jsonify

main = Blueprint('main', __name__)

VERSION = '1.0'


@main.route('/')
def health():
    return jsonify({'ok': True, 'version': VERSION})
