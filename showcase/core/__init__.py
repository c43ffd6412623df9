"""Engine core: state, lifecycle, navigation, errors and the Showcase facade."""
